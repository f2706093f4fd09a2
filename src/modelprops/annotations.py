from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

from typing_extensions import (
    Any,
    Callable,
    Iterable,
    Optional,
    Tuple,
    Type,
    TypeVar,
    get_args,
    get_origin,
    Annotated,
)

METADATA_KEY = "modelprops"
"""
Key under which directives are stored in ``dataclasses.field(metadata=...)``.
"""

DIRECTIVES_ATTRIBUTE = "__modelprops_directives__"
"""
Attribute under which decorators store directives on functions.
"""

F = TypeVar("F", bound=Callable)


@dataclass(frozen=True)
class PropertyMetadata:
    """
    Explicit documentation metadata of a property.

    Every attribute left at ``None`` is derived from the member itself.
    """

    name: Optional[str] = None
    """
    The public name of the property. Overrides the naming strategy.
    """
    description: Optional[str] = None
    required: Optional[bool] = None
    position: Optional[int] = None
    example: Any = None
    allowable_values: Optional[Tuple[Any, ...]] = None
    hidden: Optional[bool] = None

    def merge(self, other: PropertyMetadata) -> PropertyMetadata:
        """
        :param other: Metadata found on a later member of the same property.
        :return: A metadata object that keeps every explicit value of self and fills the gaps from other.
        """
        changes = {
            f.name: getattr(other, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is None
        }
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class Views:
    """
    Restricts a property to the given view classes.
    A property without views is only included when no view is active.
    """

    classes: Tuple[Type, ...]

    def __init__(self, *classes: Type):
        object.__setattr__(self, "classes", tuple(classes))


@dataclass(frozen=True)
class Unwrapped:
    """
    Flattens the properties of the member's value type into the enclosing model.
    Names of the flattened properties are decorated with the prefix and suffix.
    """

    prefix: str = ""
    suffix: str = ""


@dataclass(frozen=True)
class MemberDirectives:
    """
    All directives found on the raw members of one logical property.
    """

    metadata: PropertyMetadata = field(default_factory=PropertyMetadata)
    views: Tuple[Type, ...] = ()
    unwrapped: Optional[Unwrapped] = None

    def merge(self, other: MemberDirectives) -> MemberDirectives:
        return MemberDirectives(
            metadata=self.metadata.merge(other.metadata),
            views=self.views + tuple(v for v in other.views if v not in self.views),
            unwrapped=self.unwrapped or other.unwrapped,
        )

    @classmethod
    def from_markers(cls, markers: Iterable[Any]) -> MemberDirectives:
        result = cls()
        for marker in markers:
            match marker:
                case PropertyMetadata():
                    result = result.merge(cls(metadata=marker))
                case Views():
                    result = result.merge(cls(views=marker.classes))
                case Unwrapped():
                    result = result.merge(cls(unwrapped=marker))
        return result

    @classmethod
    def of_hint(cls, hint: Any) -> MemberDirectives:
        """
        :param hint: A type hint, possibly ``Annotated``.
        :return: The directives placed in the ``Annotated`` extras of the hint.
        """
        if get_origin(hint) is not Annotated:
            return cls()
        return cls.from_markers(get_args(hint)[1:])

    @classmethod
    def of_field(cls, field_: dataclasses.Field, hint: Any = None) -> MemberDirectives:
        markers = field_.metadata.get(METADATA_KEY, ())
        if not isinstance(markers, (tuple, list)):
            markers = (markers,)
        return cls.from_markers(markers).merge(cls.of_hint(hint))

    @classmethod
    def of_function(cls, function: Callable, hint: Any = None) -> MemberDirectives:
        return cls.from_markers(getattr(function, DIRECTIVES_ATTRIBUTE, ())).merge(
            cls.of_hint(hint)
        )


def _add_directive(function: F, marker: Any) -> F:
    target = function.__func__ if isinstance(function, (classmethod, staticmethod)) else function
    existing = getattr(target, DIRECTIVES_ATTRIBUTE, ())
    setattr(target, DIRECTIVES_ATTRIBUTE, existing + (marker,))
    return function


def property_metadata(**kwargs) -> Callable[[F], F]:
    """
    Decorator attaching a :class:`PropertyMetadata` to a getter or setter.
    """
    return lambda function: _add_directive(function, PropertyMetadata(**kwargs))


def views(*classes: Type) -> Callable[[F], F]:
    """
    Decorator restricting a getter or setter to the given view classes.
    """
    return lambda function: _add_directive(function, Views(*classes))


def unwrapped(prefix: str = "", suffix: str = "") -> Callable[[F], F]:
    """
    Decorator marking a getter or setter as unwrapped.
    """
    return lambda function: _add_directive(function, Unwrapped(prefix, suffix))


def creator(function: F) -> F:
    """
    Mark ``__init__`` or a classmethod/staticmethod as the factory used to build instances from input.
    Its parameters become the properties of the model in the write direction.
    """
    target = function.__func__ if isinstance(function, (classmethod, staticmethod)) else function
    target.__modelprops_creator__ = True
    return function


def is_creator(function: Any) -> bool:
    target = function.__func__ if isinstance(function, (classmethod, staticmethod)) else function
    return getattr(target, "__modelprops_creator__", False)


def field_metadata(*markers: Any) -> dict:
    """
    :return: A mapping for ``dataclasses.field(metadata=...)`` holding the given directives.
    """
    return {METADATA_KEY: tuple(markers)}
