from __future__ import annotations

from datetime import datetime

import pytest
from typing_extensions import Any, Dict, List, Literal, Optional, Set, Tuple, TypeVar, Union

from modelprops.failures import TypeResolutionError
from modelprops.locators import AccessorLocator, FactoryMethodLocator
from modelprops.members import FactorySignature
from modelprops.resolved_types import (
    AlternateTypeProvider,
    ResolvedType,
    UNRESOLVED,
    TypeResolver,
    collect_bindings,
    hints_of,
    is_optional,
    member_hints_of,
    strip_optional,
    substitute,
)

from dataset.example_models import Box, Invoice, Ledger, Page, Pet, PetPage, Refund, T

B = TypeVar("B", bound=int)


class Broken:
    value: DoesNotExist  # noqa: F821


def test_substitute_typing_generic():
    assert substitute(List[T], {T: int}) == List[int]
    assert substitute(Dict[str, T], {T: Pet}) == Dict[str, Pet]


def test_substitute_builtin_generic():
    assert substitute(list[T], {T: str}) == list[str]


def test_substitute_optional():
    assert substitute(Optional[T], {T: int}) == Optional[int]


def test_unbound_type_variables():
    assert substitute(T, {}) is object
    assert substitute(B, {}) is int
    assert substitute(Any, {}) is object


def test_literal_is_kept():
    assert substitute(Literal["a", "b"], {}) == Literal["a", "b"]


def test_collect_bindings_through_subclass():
    assert collect_bindings(PetPage, ()) == {T: Pet}
    assert collect_bindings(Page, (int,)) == {T: int}


def test_optional_helpers():
    assert is_optional(Optional[int])
    assert is_optional(int | None)
    assert not is_optional(Union[int, str])
    assert strip_optional(Optional[int]) is int
    assert strip_optional(Union[int, str]) == Union[int, str]


@pytest.mark.parametrize(
    "hint, expected",
    [
        (int, ResolvedType(int)),
        (Optional[int], ResolvedType(int)),
        (List[Pet], ResolvedType(list, (Pet,))),
        (Dict[str, Pet], ResolvedType(dict, (str, Pet))),
        (Tuple[int, ...], ResolvedType(tuple, (int,))),
        (Union[int, str], ResolvedType(object)),
        (Literal["a", "b"], ResolvedType(str)),
        (Literal[1, "a"], ResolvedType(object)),
        (Page[Pet], ResolvedType(Page, (Pet,))),
    ],
)
def test_type_resolver(type_resolver, hint, expected):
    assert type_resolver.resolve(hint) == expected


def test_resolved_type_flags(type_resolver):
    assert type_resolver.resolve(Set[int]).is_container
    assert type_resolver.resolve(Dict[str, int]).is_map
    assert type_resolver.resolve(datetime).is_builtin_type
    assert not type_resolver.resolve(Pet).is_builtin_type
    assert type_resolver.resolve(List[int]).name == "list[int]"


def test_resolver_bindings(type_resolver):
    assert type_resolver.resolve(List[T], {T: Pet}) == ResolvedType(list, (Pet,))


def test_unresolvable_hints():
    with pytest.raises(TypeResolutionError) as error:
        hints_of(Broken)
    assert isinstance(error.value, TypeError)
    assert "DoesNotExist" in str(error.value)


def test_generic_accessors_are_substituted(type_resolver):
    methods = AccessorLocator(type_resolver).in_type(type_resolver.resolve(Box[int]))
    getter, setter = methods

    assert getter.return_type == ResolvedType(int)
    assert setter.argument_types == (ResolvedType(int),)


def test_generic_constructor_is_substituted(type_resolver):
    locator = FactoryMethodLocator(type_resolver)
    constructor = locator.find(type_resolver.resolve(Box[str]), FactorySignature.of(Box.__init__))

    assert constructor.parameter_names == ("content",)
    assert constructor.argument_types == (ResolvedType(str),)


def test_generic_model_properties(provider, read_context, write_context):
    read = provider.properties_for(Box[int], read_context(Box[int]))
    written = provider.properties_for(Box[int], write_context(Box[int]))

    assert [(p.name, p.type) for p in read] == [("content", ResolvedType(int))]
    assert [(p.name, p.type) for p in written] == [("content", ResolvedType(int))]


def test_alternate_types_apply_to_type_arguments(type_resolver):
    alternates = AlternateTypeProvider(type_resolver=type_resolver).add_rule(datetime, str)

    assert alternates.alternate_for(type_resolver.resolve(datetime)) == ResolvedType(str)
    assert alternates.alternate_for(type_resolver.resolve(List[datetime])) == ResolvedType(
        list, (str,)
    )
    assert alternates.alternate_for(type_resolver.resolve(int)) == ResolvedType(int)


def test_first_matching_alternate_wins(type_resolver):
    alternates = (
        AlternateTypeProvider(type_resolver=type_resolver)
        .add_rule(datetime, str)
        .add_rule(datetime, int)
    )
    assert alternates.alternate_for(type_resolver.resolve(datetime)) == ResolvedType(str)


def test_member_hints_of_keeps_resolvable_annotations():
    hints = member_hints_of(Invoice)

    assert hints["number"] is int
    assert hints["total"] is UNRESOLVED
    assert member_hints_of(Refund.__init__) == {"reason": str, "amount": UNRESOLVED}
    assert member_hints_of(Pet) == hints_of(Pet)


def test_accessor_lookup_prefers_the_same_function(type_resolver):
    resolved = type_resolver.resolve(Ledger)
    locator = AccessorLocator(type_resolver)

    assert locator.find(resolved, Ledger.balance.fget).return_type == ResolvedType(int)
    assert locator.find(resolved, Ledger.owner.fget).return_type == ResolvedType(str)


def test_accessor_lookup_by_signature_stays_within_the_property(type_resolver):
    def getter(self):
        raise NotImplementedError

    resolved = type_resolver.resolve(Ledger)
    locator = AccessorLocator(type_resolver)
    balance = locator.find(resolved, getter, "balance")

    assert balance.name == "balance"
    assert balance.return_type == ResolvedType(int)
    assert locator.find(resolved, getter, "owner").return_type == ResolvedType(str)
    assert locator.find(resolved, getter, "missing") is None


def test_dataclasses_without_creator_have_no_factories(type_resolver):
    assert FactoryMethodLocator(type_resolver).in_type(type_resolver.resolve(Pet)) == []


def test_unresolvable_parameters_are_not_located(type_resolver):
    (constructor,) = FactoryMethodLocator(type_resolver).in_type(type_resolver.resolve(Refund))

    assert constructor.parameter_names == ("reason",)
    assert constructor.argument_types == (ResolvedType(str),)
    assert constructor.signature == FactorySignature.of(Refund.__init__)
