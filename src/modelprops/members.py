from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass, field
from enum import Enum

from typing_extensions import Any, Callable, List, Optional, Tuple, Type, Union

from .annotations import MemberDirectives, Unwrapped
from .failures import AmbiguousPropertyError


class Direction(Enum):
    """
    Whether a model is documented as output or as input.
    """

    READ = "read"
    """
    The model is produced by the application, e.g. a response body. Getters and fields contribute.
    """
    WRITE = "write"
    """
    The model is consumed by the application, e.g. a request body. Creator parameters, setters and fields contribute.
    """

    @property
    def is_return_type(self) -> bool:
        return self is Direction.READ


@dataclass(frozen=True)
class FactorySignature:
    """
    Structural identity of a constructor or factory method.
    """

    name: str
    parameter_names: Tuple[str, ...]

    @classmethod
    def of(cls, function: Callable) -> FactorySignature:
        function = inspect.unwrap(function)
        parameters = list(inspect.signature(function).parameters)
        if parameters and parameters[0] in ("self", "cls"):
            parameters = parameters[1:]
        return cls(function.__name__, tuple(parameters))


@dataclass(frozen=True)
class BaseCandidateMember:
    key: str
    """
    The canonical key of the logical property this member belongs to.
    """
    unwrapped: Optional[Unwrapped]
    views: Tuple[Type, ...]
    declaring_class: Type

    @property
    def is_unwrapped(self) -> bool:
        return self.unwrapped is not None


@dataclass(frozen=True)
class AccessorMember(BaseCandidateMember):
    """
    A property getter (read) or setter (write).
    """

    function: Callable
    property_name: str
    """
    The attribute name of the property the function belongs to. Functions of different properties may share their
    ``__name__``, e.g. getters created by a factory function.
    """

    @property
    def name(self) -> str:
        return self.property_name


@dataclass(frozen=True)
class FieldMember(BaseCandidateMember):
    """
    A dataclass field or an annotated class attribute.
    """

    field_name: str

    @property
    def name(self) -> str:
        return self.field_name


@dataclass(frozen=True)
class ParameterMember(BaseCandidateMember):
    """
    A parameter of ``__init__`` or of a creator factory method.
    """

    factory: Callable
    parameter: inspect.Parameter
    index: int

    @property
    def name(self) -> str:
        return self.parameter.name


CandidateMember = Union[AccessorMember, FieldMember, ParameterMember]


def factory_method_of(member: ParameterMember) -> FactorySignature:
    return FactorySignature.of(member.factory)


@dataclass
class RawField:
    """
    A field as declared on a class, before generic substitution.
    """

    name: str
    declaring_class: Type
    hint: Any
    dataclass_field: Optional[dataclasses.Field] = None

    @property
    def default(self) -> Any:
        if self.dataclass_field is not None:
            if self.dataclass_field.default is not dataclasses.MISSING:
                return self.dataclass_field.default
            if self.dataclass_field.default_factory is not dataclasses.MISSING:
                return self.dataclass_field.default_factory
            return dataclasses.MISSING
        return self.declaring_class.__dict__.get(self.name, dataclasses.MISSING)

    @property
    def has_default(self) -> bool:
        return self.default is not dataclasses.MISSING


@dataclass
class RawAccessor:
    """
    A getter or setter as declared on a class.
    """

    name: str
    """
    The attribute name of the property.
    """
    declaring_class: Type
    function: Callable


@dataclass
class RawParameter:
    parameter: inspect.Parameter
    factory: Callable
    declaring_class: Type
    index: int


@dataclass
class BeanProperty:
    """
    All raw members that make up one logical property of a model, correlated by their canonical key.
    """

    key: str
    """
    The canonical key, the explicit name if one is given, otherwise the attribute name without leading underscores.
    """
    index: int
    """
    Declaration order of the first member of this property.
    """
    internal_name: str
    """
    The attribute name of the first member of this property.
    """
    fields: List[RawField] = field(default_factory=list)
    getters: List[RawAccessor] = field(default_factory=list)
    setters: List[RawAccessor] = field(default_factory=list)
    parameters: List[RawParameter] = field(default_factory=list)
    directives: MemberDirectives = field(default_factory=MemberDirectives)

    @property
    def explicit_name(self) -> Optional[str]:
        return self.directives.metadata.name

    @property
    def views(self) -> Tuple[Type, ...]:
        return self.directives.views

    @property
    def unwrapped(self) -> Optional[Unwrapped]:
        return self.directives.unwrapped

    def has_getter(self) -> bool:
        return bool(self.getters)

    def has_setter(self) -> bool:
        return bool(self.setters)

    def has_field(self) -> bool:
        return bool(self.fields)

    def has_parameter(self) -> bool:
        return bool(self.parameters)

    def is_visible(self, direction: Direction) -> bool:
        if direction is Direction.READ:
            return self.has_getter() or self.has_field()
        return self.has_parameter() or self.has_setter() or self.has_field()

    def primary_member(self, direction: Direction) -> CandidateMember:
        """
        Pick the raw member that represents this property for the given direction.

        :param direction: The serialization direction.
        :return: The primary member as candidate.
        :raises AmbiguousPropertyError: If more than one raw member of the winning kind exists.
        """
        if direction is Direction.READ:
            kinds = [self.getters, self.fields]
        else:
            kinds = [self.parameters, self.setters, self.fields]
        for members in kinds:
            if not members:
                continue
            if len(members) > 1:
                raise AmbiguousPropertyError(
                    self.key, tuple(_describe(m) for m in members)
                )
            return self._candidate(members[0])
        raise AmbiguousPropertyError(self.key, ())

    def _candidate(self, member) -> CandidateMember:
        common = dict(key=self.key, unwrapped=self.unwrapped, views=self.views)
        if isinstance(member, RawField):
            return FieldMember(
                declaring_class=member.declaring_class,
                field_name=member.name,
                **common,
            )
        if isinstance(member, RawParameter):
            return ParameterMember(
                declaring_class=member.declaring_class,
                factory=member.factory,
                parameter=member.parameter,
                index=member.index,
                **common,
            )
        return AccessorMember(
            declaring_class=member.declaring_class,
            function=member.function,
            property_name=member.name,
            **common,
        )


def _describe(member) -> str:
    if isinstance(member, RawParameter):
        return f"{member.factory.__qualname__}({member.parameter.name})"
    return f"{member.declaring_class.__name__}.{member.name}"
