from __future__ import annotations

import enum
import inspect
import logging
import sys
import types
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import cached_property, reduce
import operator

from typing_extensions import (
    Annotated,
    Any,
    Dict,
    Generic,
    List,
    Literal,
    Optional,
    Protocol,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)
from collections.abc import Mapping, Sequence, Set as AbstractSet

from .failures import TypeResolutionError

logger = logging.getLogger(__name__)

NoneType = type(None)

UNRESOLVED = object()
"""
Stands in for an annotation that could not be evaluated, e.g. a name only imported under ``TYPE_CHECKING``.
"""

container_types: Tuple[Type, ...] = (list, set, frozenset, tuple, Sequence, AbstractSet)
"""
Erased types that are documented as collections of their first type argument.
"""

map_types: Tuple[Type, ...] = (dict, Mapping)


def is_optional(hint: Any) -> bool:
    """
    :param hint: A type hint.
    :return: Whether the hint is a union that contains ``None``.
    """
    if get_origin(hint) in (Union, types.UnionType):
        return NoneType in get_args(hint)
    return False


def strip_annotated(hint: Any) -> Any:
    while get_origin(hint) is Annotated:
        hint = get_args(hint)[0]
    return hint


def strip_optional(hint: Any) -> Any:
    """
    :return: The hint without ``Annotated`` extras and without ``None`` if it was optional. Unions of more than one
        non-None member are returned unchanged.
    """
    hint = strip_annotated(hint)
    if is_optional(hint):
        remaining = [a for a in get_args(hint) if a is not NoneType]
        if len(remaining) == 1:
            return strip_annotated(remaining[0])
    return hint


def substitute(hint: Any, bindings: Dict[TypeVar, Any]) -> Any:
    """
    Replace every type variable in a hint by its binding.
    Unbound type variables are replaced by their bound, or ``object`` if they have none.

    :param hint: The hint to substitute in.
    :param bindings: A mapping from type variables to concrete hints.
    :return: The substituted hint, without ``Annotated`` extras.
    """
    hint = strip_annotated(hint)
    if isinstance(hint, TypeVar):
        if hint in bindings:
            return bindings[hint]
        return hint.__bound__ if hint.__bound__ is not None else object
    if hint is Any:
        return object
    origin = get_origin(hint)
    args = get_args(hint)
    if origin is None or not args or origin is Literal:
        return hint
    new_args = tuple(substitute(a, bindings) for a in args)
    if origin is types.UnionType:
        return reduce(operator.or_, new_args)
    if origin is Union:
        return Union[new_args]
    if isinstance(hint, types.GenericAlias):
        return types.GenericAlias(origin, new_args)
    if hasattr(hint, "copy_with"):
        return hint.copy_with(new_args)
    return hint


def collect_bindings(clazz: Type, arguments: Tuple[Any, ...]) -> Dict[TypeVar, Any]:
    """
    Collect the bindings of the type variables of a generic class and of all of its generic ancestors.

    Example:
        >>> T = TypeVar("T")
        >>> class Page(Generic[T]): ...
        >>> class IntPage(Page[int]): ...
        >>> collect_bindings(IntPage, ())
        {~T: <class 'int'>}

    :param clazz: The erased class.
    :param arguments: The type arguments the class is parametrized with.
    :return: A mapping from type variables to their concrete hints.
    """
    bindings: Dict[TypeVar, Any] = {}
    _collect_bindings(clazz, arguments, bindings, set())
    return bindings


def _collect_bindings(clazz, arguments, bindings, visited):
    if clazz in visited:
        return
    visited.add(clazz)
    for parameter, argument in zip(getattr(clazz, "__parameters__", ()), arguments):
        bindings[parameter] = argument
    for base in getattr(clazz, "__orig_bases__", ()):
        base_origin = get_origin(base)
        if base_origin is None or base_origin in (Generic, Protocol):
            continue
        base_arguments = tuple(substitute(a, bindings) for a in get_args(base))
        _collect_bindings(base_origin, base_arguments, bindings, visited)


@dataclass(frozen=True)
class ResolvedType:
    """
    A fully resolved type: an erased class together with the type arguments it is parametrized with.
    """

    erased_type: Type
    """
    The runtime class, e.g. ``list`` for ``List[int]``.
    """
    type_parameters: Tuple[Any, ...] = ()
    """
    The concrete type arguments.
    """

    @cached_property
    def bindings(self) -> Dict[TypeVar, Any]:
        return collect_bindings(self.erased_type, self.type_parameters)

    @cached_property
    def hint(self) -> Any:
        """
        The hint this resolved type was built from, e.g. ``Page[int]``.
        """
        if not self.type_parameters:
            return self.erased_type
        try:
            return self.erased_type[self.type_parameters]
        except TypeError:
            return types.GenericAlias(self.erased_type, self.type_parameters)

    @cached_property
    def member_hints(self) -> Dict[str, Any]:
        """
        Type hints of the class attributes, including ``Annotated`` extras, before substitution.
        """
        return member_hints_of(self.erased_type)

    def resolve(self, hint: Any) -> Any:
        """
        :param hint: A hint declared on this type or one of its ancestors.
        :return: The hint with this type's bindings substituted.
        """
        return substitute(hint, self.bindings)

    @cached_property
    def is_container(self) -> bool:
        return self.erased_type in container_types

    @cached_property
    def is_map(self) -> bool:
        return self.erased_type in map_types

    @cached_property
    def is_enum(self) -> bool:
        return isinstance(self.erased_type, type) and issubclass(
            self.erased_type, enum.Enum
        )

    @cached_property
    def is_builtin_type(self) -> bool:
        return self.erased_type in (int, float, str, bool, bytes, datetime, date, NoneType, object)

    def __repr__(self):
        return f"ResolvedType({self.name})"

    @cached_property
    def name(self) -> str:
        name = getattr(self.erased_type, "__name__", str(self.erased_type))
        if not self.type_parameters:
            return name
        return f"{name}[{', '.join(_hint_name(p) for p in self.type_parameters)}]"


def _hint_name(hint: Any) -> str:
    if isinstance(hint, type) and not get_args(hint):
        return hint.__name__
    return str(hint).replace("typing.", "")


def hints_of(owner: Any) -> Dict[str, Any]:
    """
    :param owner: A class or a function.
    :return: Its evaluated type hints, including ``Annotated`` extras.
    """
    try:
        return get_type_hints(owner, include_extras=True)
    except NameError as e:
        raise TypeResolutionError(
            f"{getattr(owner, '__qualname__', owner)} ({e.name})"
        ) from e


def member_hints_of(owner: Any) -> Dict[str, Any]:
    """
    Evaluate the type hints of a class or function, falling back to one annotation at a time if they cannot be
    evaluated together.

    :param owner: A class or a function.
    :return: Its evaluated type hints, including ``Annotated`` extras. Annotations that cannot be evaluated map to
        :data:`UNRESOLVED`.
    """
    try:
        return hints_of(owner)
    except TypeResolutionError as e:
        logger.debug(f"{e}, evaluating the annotations one at a time")
    result: Dict[str, Any] = {}
    for annotations, globalns, localns in _annotation_scopes(owner):
        for name, annotation in annotations.items():
            holder = type("_AnnotationHolder", (), {"__annotations__": {name: annotation}})
            try:
                result[name] = get_type_hints(holder, globalns, localns, include_extras=True)[name]
            except (NameError, TypeError) as e:
                logger.warning(
                    f"Could not resolve the type of {getattr(owner, '__qualname__', owner)}.{name} ({e}), "
                    f"skipping it"
                )
                result[name] = UNRESOLVED
    return result


def _annotation_scopes(owner: Any):
    """
    Yield the raw annotations of a class, base classes first, or of a function, each with the namespaces to evaluate
    them in.
    """
    if isinstance(owner, type):
        for klass in reversed(owner.__mro__):
            module = sys.modules.get(klass.__module__)
            yield inspect.get_annotations(klass), vars(module) if module else {}, dict(vars(klass))
        return
    function = inspect.unwrap(owner)
    yield inspect.get_annotations(function), getattr(function, "__globals__", {}), None


@dataclass
class TypeResolver:
    """
    Turns type hints into :class:`ResolvedType` instances.
    """

    _cache: Dict[Any, ResolvedType] = field(default_factory=dict, init=False, repr=False)

    def resolve(self, hint: Any, bindings: Optional[Dict[TypeVar, Any]] = None) -> ResolvedType:
        """
        :param hint: A class, a parametrized generic or an optional/annotated hint.
        :param bindings: Bindings to substitute in the hint before resolving it.
        :return: The resolved type. Unions of more than one type resolve to ``object``.
        """
        if isinstance(hint, ResolvedType):
            return hint
        hint = strip_optional(substitute(hint, bindings or {}))
        try:
            return self._cache[hint]
        except (KeyError, TypeError):
            pass
        result = self._resolve(hint)
        try:
            self._cache[hint] = result
        except TypeError:
            pass
        return result

    @staticmethod
    def _resolve(hint: Any) -> ResolvedType:
        origin = get_origin(hint)
        if origin is None:
            if isinstance(hint, type):
                return ResolvedType(hint)
            return ResolvedType(object)
        if origin in (Union, types.UnionType):
            return ResolvedType(object)
        if origin is Literal:
            values = get_args(hint)
            value_types = {type(v) for v in values}
            return ResolvedType(value_types.pop() if len(value_types) == 1 else object)
        arguments = tuple(
            ... if a is Ellipsis else strip_optional(a) for a in get_args(hint)
        )
        if origin is tuple and len(arguments) == 2 and arguments[1] is Ellipsis:
            arguments = arguments[:1]
        return ResolvedType(origin, arguments)


@dataclass(frozen=True)
class AlternateTypeRule:
    """
    Documents ``original`` as ``alternate``, e.g. ``datetime`` as ``str``.
    """

    original: Any
    alternate: Any

    def applies_to(self, resolved: ResolvedType, resolver: TypeResolver) -> bool:
        return resolver.resolve(self.original) == resolved


@dataclass
class AlternateTypeProvider:
    """
    Ordered substitution table for documented types. The first matching rule wins.
    Rules are applied to the arguments of containers and maps as well.
    """

    rules: List[AlternateTypeRule] = field(default_factory=list)
    type_resolver: TypeResolver = field(default_factory=TypeResolver, repr=False)

    def add_rule(self, original: Any, alternate: Any) -> AlternateTypeProvider:
        self.rules.append(AlternateTypeRule(original, alternate))
        return self

    def alternate_for(self, resolved: ResolvedType) -> ResolvedType:
        for rule in self.rules:
            if rule.applies_to(resolved, self.type_resolver):
                return self.type_resolver.resolve(rule.alternate)
        if not resolved.type_parameters:
            return resolved
        parameters = tuple(
            p if p is Ellipsis else self.alternate_for(self.type_resolver.resolve(p)).hint
            for p in resolved.type_parameters
        )
        return ResolvedType(resolved.erased_type, parameters)

    def __hash__(self):
        return hash(tuple(self.rules))

    def __eq__(self, other):
        return isinstance(other, AlternateTypeProvider) and self.rules == other.rules
