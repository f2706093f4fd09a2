from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from functools import cached_property

from typing_extensions import Any, Callable, List, Optional, Tuple, Type

from .introspection import factories_of, fields_of, parameters_of, properties_of
from .members import FactorySignature, RawField
from .resolved_types import UNRESOLVED, ResolvedType, TypeResolver, is_optional, member_hints_of


@dataclass(frozen=True)
class ResolvedField:
    """
    A field of a resolved type with its generic type substituted.
    """

    raw_member: RawField
    type: ResolvedType
    declared_hint: Any
    """
    The substituted hint, still carrying ``Optional``.
    """

    @property
    def name(self) -> str:
        return self.raw_member.name

    @property
    def is_optional(self) -> bool:
        return is_optional(self.declared_hint)


@dataclass(frozen=True)
class ResolvedMethod:
    """
    A getter or setter of a resolved type with its signature substituted.
    """

    raw_member: Callable
    property_name: str
    declaring_type: Type
    return_type: Optional[ResolvedType]
    argument_types: Tuple[ResolvedType, ...]
    declared_hint: Any
    """
    The substituted return hint of a getter or first argument hint of a setter.
    """

    @property
    def name(self) -> str:
        return self.property_name

    @property
    def is_optional(self) -> bool:
        return is_optional(self.declared_hint)


@dataclass(frozen=True)
class ResolvedConstructor:
    """
    ``__init__`` or a creator factory method of a resolved type with its parameter types substituted.
    """

    raw_member: Callable
    declaring_type: Type
    parameter_names: Tuple[str, ...]
    argument_types: Tuple[ResolvedType, ...]
    argument_hints: Tuple[Any, ...]

    @cached_property
    def signature(self) -> FactorySignature:
        return FactorySignature.of(self.raw_member)

    def argument_index(self, name: str) -> int:
        return self.parameter_names.index(name)


def param_or_return_type(method: ResolvedMethod) -> ResolvedType:
    """
    :return: The return type of a getter, the type of the first argument of a setter.
    """
    if method.argument_types:
        return method.argument_types[0]
    return method.return_type


@dataclass
class SimpleMethodSignatureEquality:
    """
    Compares methods by name and parameter layout rather than by identity, since an overriding or re-decorated
    method is a different object with the same signature.
    """

    def equivalent(self, first: Callable, second: Callable) -> bool:
        if first is second:
            return True
        if first.__name__ != second.__name__:
            return False
        return self._layout(first) == self._layout(second)

    @staticmethod
    def _layout(function: Callable) -> Tuple[Tuple[str, Any], ...]:
        return tuple(
            (p.name, p.kind) for p in inspect.signature(function).parameters.values()
        )


@dataclass
class AccessorLocator:
    """
    Locates the getters and setters of a resolved type.
    """

    type_resolver: TypeResolver = field(default_factory=TypeResolver)
    signature_equality: SimpleMethodSignatureEquality = field(
        default_factory=SimpleMethodSignatureEquality
    )

    def in_type(self, type_: ResolvedType) -> List[ResolvedMethod]:
        """
        :return: The getters and setters of `type_` whose annotations can be evaluated.
        """
        result = []
        for discovered in properties_of(type_.erased_type):
            if discovered.getter is not None:
                return_hint = member_hints_of(discovered.getter).get("return", Any)
                if return_hint is not UNRESOLVED:
                    hint = type_.resolve(return_hint)
                    result.append(
                        ResolvedMethod(
                            discovered.getter,
                            discovered.name,
                            discovered.declaring_class,
                            self.type_resolver.resolve(hint),
                            (),
                            hint,
                        )
                    )
            if discovered.setter is not None:
                setter_hints = member_hints_of(discovered.setter)
                raw_hints = [setter_hints.get(p.name, Any) for _, p in parameters_of(discovered.setter)]
                if any(h is UNRESOLVED for h in raw_hints):
                    continue
                hints = tuple(type_.resolve(h) for h in raw_hints)
                result.append(
                    ResolvedMethod(
                        discovered.setter,
                        discovered.name,
                        discovered.declaring_class,
                        None,
                        tuple(self.type_resolver.resolve(h) for h in hints),
                        hints[0] if hints else object,
                    )
                )
        return result

    def find(
        self, type_: ResolvedType, raw_method: Callable, property_name: Optional[str] = None
    ) -> Optional[ResolvedMethod]:
        """
        Find the resolved form of a getter or setter.
        The very same function wins. Otherwise a method of the same property with an equivalent signature is taken,
        since functions of different properties may share their name.

        :param type_: The type to search.
        :param raw_method: The getter or setter as discovered.
        :param property_name: The attribute name of its property, if known.
        """
        methods = self.in_type(type_)
        for method in methods:
            if method.raw_member is raw_method:
                return method
        for method in methods:
            if property_name is not None and method.property_name != property_name:
                continue
            if self.signature_equality.equivalent(method.raw_member, raw_method):
                return method
        return None


@dataclass
class FieldLocator:
    """
    Locates the fields of a resolved type.
    """

    type_resolver: TypeResolver = field(default_factory=TypeResolver)

    def in_type(self, type_: ResolvedType) -> List[ResolvedField]:
        result = []
        for raw_field in fields_of(type_.erased_type, type_.member_hints):
            hint = type_.resolve(raw_field.hint)
            result.append(ResolvedField(raw_field, self.type_resolver.resolve(hint), hint))
        return result

    def find(self, type_: ResolvedType, field_name: str) -> Optional[ResolvedField]:
        for resolved_field in self.in_type(type_):
            if resolved_field.name == field_name:
                return resolved_field
        return None


@dataclass
class FactoryMethodLocator:
    """
    Locates ``__init__`` and the creator factory methods of a resolved type.
    """

    type_resolver: TypeResolver = field(default_factory=TypeResolver)
    implicit_constructor_parameters: bool = True

    def in_type(self, type_: ResolvedType) -> List[ResolvedConstructor]:
        """
        :return: The factories of `type_`. Parameters whose annotation cannot be evaluated are left out.
        """
        result = []
        for declaring_class, factory in factories_of(
            type_.erased_type, self.implicit_constructor_parameters
        ):
            factory_hints = member_hints_of(factory)
            parameters = [
                p for _, p in parameters_of(factory) if factory_hints.get(p.name) is not UNRESOLVED
            ]
            hints = tuple(type_.resolve(factory_hints.get(p.name, Any)) for p in parameters)
            result.append(
                ResolvedConstructor(
                    factory,
                    declaring_class,
                    tuple(p.name for p in parameters),
                    tuple(self.type_resolver.resolve(h) for h in hints),
                    hints,
                )
            )
        return result

    def find(
        self, type_: ResolvedType, factory_signature: FactorySignature
    ) -> Optional[ResolvedConstructor]:
        for constructor in self.in_type(type_):
            if constructor.signature == factory_signature:
                return constructor
        return None
