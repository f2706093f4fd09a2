from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum

from typing_extensions import Any, FrozenSet, Optional, Tuple, Type

from .members import BeanProperty, Direction
from .model import ModelPropertyBuilder
from .resolved_types import AlternateTypeProvider, ResolvedType, TypeResolver


class DocumentationType(Enum):
    """
    The documentation format the models are generated for.
    """

    SWAGGER_12 = "swagger_12"
    SWAGGER_2 = "swagger_2"
    OPENAPI_3 = "openapi_3"


@dataclass(frozen=True)
class ResolutionContext:
    """
    Describes how a model is used: as input or output, under which view, for which documentation format.

    Contexts form a tree. A child context created with :meth:`from_parent` inherits everything from its parent but is
    rooted at the type of the unwrapped member.
    """

    type: ResolvedType
    """
    The type this context is rooted at.
    """
    direction: Direction
    documentation_type: DocumentationType = DocumentationType.SWAGGER_2
    view: Optional[Type] = None
    """
    The active view class, ``None`` if properties are not restricted by view.
    """
    alternate_type_provider: AlternateTypeProvider = field(
        default_factory=AlternateTypeProvider
    )
    ignorable_types: FrozenSet[Type] = frozenset()
    """
    Erased types whose properties are left out of the documentation.
    """
    parent: Optional[ResolutionContext] = field(default=None, compare=False, repr=False)

    @classmethod
    def input_param(
        cls,
        type_: ResolvedType,
        documentation_type: DocumentationType = DocumentationType.SWAGGER_2,
        **kwargs: Any,
    ) -> ResolutionContext:
        """
        :return: A root context documenting `type_` as input, e.g. a request body.
        """
        return cls(type_, Direction.WRITE, documentation_type, **kwargs)

    @classmethod
    def return_value(
        cls,
        type_: ResolvedType,
        documentation_type: DocumentationType = DocumentationType.SWAGGER_2,
        **kwargs: Any,
    ) -> ResolutionContext:
        """
        :return: A root context documenting `type_` as output, e.g. a response body.
        """
        return cls(type_, Direction.READ, documentation_type, **kwargs)

    @classmethod
    def from_parent(cls, parent: ResolutionContext, type_: ResolvedType) -> ResolutionContext:
        return cls(
            type=type_,
            direction=parent.direction,
            documentation_type=parent.documentation_type,
            view=parent.view,
            alternate_type_provider=parent.alternate_type_provider,
            ignorable_types=parent.ignorable_types,
            parent=parent,
        )

    @property
    def is_return_type(self) -> bool:
        return self.direction.is_return_type

    @property
    def depth(self) -> int:
        return 0 if self.parent is None else self.parent.depth + 1

    @property
    def unwrap_chain(self) -> Tuple[ResolvedType, ...]:
        """
        The types from the root context down to this one.
        """
        if self.parent is None:
            return (self.type,)
        return self.parent.unwrap_chain + (self.type,)

    def can_ignore(self, type_: ResolvedType) -> bool:
        return type_.erased_type in self.ignorable_types

    def with_ignorable_types(self, *types: Type) -> ResolutionContext:
        return dataclasses.replace(
            self, ignorable_types=self.ignorable_types | frozenset(types)
        )


@dataclass
class ModelPropertyContext:
    """
    What a property plugin gets to see and change.
    """

    builder: ModelPropertyBuilder
    """
    The property in progress. Plugins change the property through it.
    """
    bean_property: BeanProperty
    type_resolver: TypeResolver
    documentation_type: DocumentationType
    annotated_element: Optional[Any] = None
    """
    The raw member of field based properties, a :class:`modelprops.members.RawField`.
    """
