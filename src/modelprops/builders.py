from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cached_property

from typing_extensions import Any, Literal, Optional, get_args, get_origin

from .locators import ResolvedConstructor, ResolvedField, ResolvedMethod, param_or_return_type
from .members import BeanProperty
from .model import AllowableListValues, AllowableValues, ModelPropertyBuilder
from .resolved_types import (
    AlternateTypeProvider,
    ResolvedType,
    TypeResolver,
    is_optional,
    strip_optional,
)


@dataclass
class BaseModelProperty(ABC):
    """
    Wraps a located member and the metadata of its logical property into the values of a documented property.
    """

    name: str
    """
    The documented name, as computed by the naming strategy.
    """
    type_resolver: TypeResolver
    alternate_type_provider: AlternateTypeProvider
    bean_property: BeanProperty

    @property
    @abstractmethod
    def real_type(self) -> ResolvedType:
        """
        The type of the member with generics substituted, before alternate types are applied.
        """

    @property
    @abstractmethod
    def declared_hint(self) -> Any:
        """
        The substituted hint of the member, still carrying ``Optional`` and ``Literal``.
        """

    @abstractmethod
    def is_implicitly_required(self) -> bool: ...

    @cached_property
    def type(self) -> ResolvedType:
        return self.alternate_type_provider.alternate_for(self.real_type)

    def qualified_type_name(self) -> str:
        erased = self.type.erased_type
        module = getattr(erased, "__module__", "builtins")
        name = getattr(erased, "__qualname__", str(erased))
        if module == "builtins":
            return name
        return f"{module}.{name}"

    def position(self) -> int:
        explicit = self.bean_property.directives.metadata.position
        return explicit if explicit is not None else self.bean_property.index

    def is_required(self) -> bool:
        explicit = self.bean_property.directives.metadata.required
        if explicit is not None:
            return explicit
        return self.is_implicitly_required()

    def property_description(self) -> Optional[str]:
        return self.bean_property.directives.metadata.description

    def allowable_values(self) -> Optional[AllowableValues]:
        explicit = self.bean_property.directives.metadata.allowable_values
        if explicit is not None:
            return AllowableListValues(tuple(explicit))
        bare = strip_optional(self.declared_hint)
        if get_origin(bare) is Literal:
            return AllowableListValues(get_args(bare))
        if self.type.is_enum:
            return AllowableListValues(tuple(m.value for m in self.type.erased_type))
        return None

    def example(self) -> Any:
        return self.bean_property.directives.metadata.example

    def builder(self) -> ModelPropertyBuilder:
        """
        :return: A builder holding every value this property can derive from its member.
        """
        return (
            ModelPropertyBuilder()
            .name(self.name)
            .type(self.type)
            .qualified_type(self.qualified_type_name())
            .position(self.position())
            .required(self.is_required())
            .description(self.property_description())
            .allowable_values(self.allowable_values())
            .example(self.example())
        )


@dataclass
class FieldModelProperty(BaseModelProperty):
    """
    A property backed by a field. Whether it is hidden is left to the plugins.
    """

    field: ResolvedField

    @property
    def real_type(self) -> ResolvedType:
        return self.field.type

    @property
    def declared_hint(self) -> Any:
        return self.field.declared_hint

    def is_implicitly_required(self) -> bool:
        return not self.field.is_optional and not self.field.raw_member.has_default


@dataclass
class BeanModelProperty(BaseModelProperty):
    """
    A property backed by a getter or a setter.
    """

    method: ResolvedMethod

    @property
    def real_type(self) -> ResolvedType:
        return param_or_return_type(self.method)

    @property
    def declared_hint(self) -> Any:
        return self.method.declared_hint

    def is_implicitly_required(self) -> bool:
        return not self.method.is_optional

    def builder(self) -> ModelPropertyBuilder:
        return super().builder().is_hidden(False)


@dataclass
class ParameterModelProperty(BaseModelProperty):
    """
    A property backed by a parameter of ``__init__`` or of a creator factory method.
    """

    constructor: ResolvedConstructor
    parameter: inspect.Parameter

    @cached_property
    def argument_index(self) -> int:
        return self.constructor.argument_index(self.parameter.name)

    @property
    def real_type(self) -> ResolvedType:
        return self.constructor.argument_types[self.argument_index]

    @property
    def declared_hint(self) -> Any:
        return self.constructor.argument_hints[self.argument_index]

    def is_implicitly_required(self) -> bool:
        has_default = self.parameter.default is not inspect.Parameter.empty
        return not has_default and not is_optional(self.declared_hint)

    def builder(self) -> ModelPropertyBuilder:
        return super().builder().is_hidden(False)
