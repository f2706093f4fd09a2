from __future__ import annotations

import dataclasses
import itertools
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cached_property

from typing_extensions import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Optional,
    Tuple,
    Type,
    get_origin,
)

from .annotations import MemberDirectives, is_creator
from .members import BeanProperty, Direction, RawAccessor, RawField, RawParameter
from .resolved_types import UNRESOLVED, ResolvedType, member_hints_of, strip_annotated

logger = logging.getLogger(__name__)


@dataclass
class DiscoveredProperty:
    """A python property (or cached property) discovered on a class."""

    name: str
    declaring_class: Type
    getter: Optional[Callable]
    setter: Optional[Callable]


def canonical_name(attribute_name: str) -> str:
    """
    :return: The attribute name without leading underscores, the name used to correlate fields and properties.
    """
    return attribute_name.lstrip("_") or attribute_name


def declaring_class_of(clazz: Type, attribute_name: str) -> Type:
    for klass in clazz.__mro__:
        if attribute_name in inspect.get_annotations(klass) or attribute_name in vars(klass):
            return klass
    return clazz


def fields_of(clazz: Type, hints: Dict[str, Any]) -> List[RawField]:
    """
    Discover the fields of a class in declaration order.
    For dataclasses these are the dataclass fields, otherwise the annotated class attributes.
    Fields whose annotation could not be evaluated are left out.

    :param clazz: The class to inspect.
    :param hints: The evaluated type hints of the class.
    """
    if dataclasses.is_dataclass(clazz):
        return [
            RawField(f.name, declaring_class_of(clazz, f.name), hints.get(f.name, Any), f)
            for f in dataclasses.fields(clazz)
            if hints.get(f.name) is not UNRESOLVED
        ]
    result = []
    for name, hint in hints.items():
        if hint is UNRESOLVED:
            continue
        bare = strip_annotated(hint)
        if bare is ClassVar or get_origin(bare) is ClassVar:
            continue
        if isinstance(inspect.getattr_static(clazz, name, None), (property, cached_property)):
            continue
        result.append(RawField(name, declaring_class_of(clazz, name), hint))
    return result


def properties_of(clazz: Type) -> List[DiscoveredProperty]:
    """
    Discover properties of a class in declaration order, base classes first.
    An overriding definition replaces the inherited one but keeps its place.
    """
    result: Dict[str, DiscoveredProperty] = {}
    for klass in reversed(clazz.__mro__):
        for name, attribute in vars(klass).items():
            if isinstance(attribute, property):
                result[name] = DiscoveredProperty(name, klass, attribute.fget, attribute.fset)
            elif isinstance(attribute, cached_property):
                result[name] = DiscoveredProperty(name, klass, attribute.func, None)
    return list(result.values())


def factories_of(clazz: Type, implicit_constructor: bool = True) -> List[Tuple[Type, Callable]]:
    """
    Discover the factories whose parameters describe the input form of a class.

    Explicit creators (see :func:`modelprops.annotations.creator`) win. Without creators, ``__init__`` of a
    non-dataclass is used if ``implicit_constructor`` is set.

    :return: Pairs of declaring class and plain function.
    """
    result: Dict[str, Tuple[Type, Callable]] = {}
    for klass in clazz.__mro__:
        for name, attribute in vars(klass).items():
            if name in result or not is_creator(attribute):
                continue
            if isinstance(attribute, (classmethod, staticmethod)):
                attribute = attribute.__func__
            result[name] = (klass, attribute)
    if result or not implicit_constructor or dataclasses.is_dataclass(clazz):
        return list(result.values())
    if clazz.__init__ is object.__init__:
        return []
    return [(declaring_class_of(clazz, "__init__"), clazz.__init__)]


def parameters_of(factory: Callable) -> List[Tuple[int, inspect.Parameter]]:
    """
    :return: The named parameters of a factory with their position, without ``self``/``cls`` and variadics.
    """
    result = []
    for index, parameter in enumerate(inspect.signature(factory).parameters.values()):
        if index == 0 and parameter.name in ("self", "cls"):
            continue
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            continue
        result.append((index, parameter))
    return result


@dataclass
class MemberEnumerator(ABC):
    """
    Strategy that discovers the logical properties of a type.

    Implementations return one :class:`BeanProperty` per logical property, keyed by its canonical key.
    """

    @abstractmethod
    def describe(self, type_: ResolvedType, direction: Direction) -> Dict[str, BeanProperty]:
        """
        Return the properties of `type_` that are visible in `direction`.
        """
        raise NotImplementedError


@dataclass
class DefaultMemberEnumerator(MemberEnumerator):
    """
    Discover fields, properties and creator parameters of plain classes and dataclasses.

    Members are correlated by their attribute name without leading underscores, so a private field ``_x`` lends its
    directives to the property ``x``. Members that carry an explicit name are then regrouped under that name.
    """

    implicit_constructor_parameters: bool = True
    """
    Whether ``__init__`` parameters of non-dataclasses describe the input form when no creator is declared.
    """

    def describe(self, type_: ResolvedType, direction: Direction) -> Dict[str, BeanProperty]:
        clazz = type_.erased_type
        if not isinstance(clazz, type) or type_.is_builtin_type:
            return {}
        groups: Dict[str, BeanProperty] = {}
        counter = itertools.count()

        def group_for(attribute_name: str) -> BeanProperty:
            key = canonical_name(attribute_name)
            if key not in groups:
                groups[key] = BeanProperty(key=key, index=next(counter), internal_name=attribute_name)
            return groups[key]

        for raw_field in fields_of(clazz, type_.member_hints):
            if raw_field.dataclass_field is not None:
                directives = MemberDirectives.of_field(raw_field.dataclass_field, raw_field.hint)
            else:
                directives = MemberDirectives.of_hint(raw_field.hint)
            group = group_for(raw_field.name)
            group.directives = group.directives.merge(directives)
            if not raw_field.name.startswith("_"):
                group.fields.append(raw_field)

        for discovered in properties_of(clazz):
            if discovered.name.startswith("_"):
                continue
            getter, setter = discovered.getter, discovered.setter
            getter_hint = _return_hint(getter)
            setter_hint = _first_parameter_hint(setter)
            if getter_hint is UNRESOLVED:
                getter = None
            if setter_hint is UNRESOLVED:
                setter = None
            if getter is None and setter is None:
                continue
            group = group_for(discovered.name)
            if getter is not None:
                group.directives = group.directives.merge(MemberDirectives.of_function(getter, getter_hint))
                group.getters.append(RawAccessor(discovered.name, discovered.declaring_class, getter))
            if setter is not None:
                group.directives = group.directives.merge(MemberDirectives.of_function(setter, setter_hint))
                group.setters.append(RawAccessor(discovered.name, discovered.declaring_class, setter))

        if direction is Direction.WRITE:
            for declaring_class, factory in factories_of(clazz, self.implicit_constructor_parameters):
                factory_hints = member_hints_of(factory)
                for index, parameter in parameters_of(factory):
                    if factory_hints.get(parameter.name) is UNRESOLVED:
                        continue
                    group = group_for(parameter.name)
                    group.directives = group.directives.merge(
                        MemberDirectives.of_hint(factory_hints.get(parameter.name))
                    )
                    group.parameters.append(RawParameter(parameter, factory, declaring_class, index))

        return self._rename(
            [g for g in groups.values() if g.is_visible(direction)]
        )

    @staticmethod
    def _rename(groups: List[BeanProperty]) -> Dict[str, BeanProperty]:
        """
        Regroup properties under their explicit name where one is given.
        Properties that share a key afterwards are merged, which may make them ambiguous.
        """
        result: Dict[str, BeanProperty] = {}
        for group in groups:
            key = group.explicit_name or group.key
            if key not in result:
                group.key = key
                result[key] = group
                continue
            logger.debug(f"Merging property {group.internal_name} into {key}")
            existing = result[key]
            existing.fields.extend(group.fields)
            existing.getters.extend(group.getters)
            existing.setters.extend(group.setters)
            existing.parameters.extend(group.parameters)
            existing.directives = existing.directives.merge(group.directives)
        return result


def _return_hint(function: Optional[Callable]) -> Any:
    if function is None:
        return None
    return member_hints_of(function).get("return")


def _first_parameter_hint(function: Optional[Callable]) -> Any:
    if function is None:
        return None
    parameters = [p for _, p in parameters_of(function)]
    if not parameters:
        return None
    return member_hints_of(function).get(parameters[0].name)
