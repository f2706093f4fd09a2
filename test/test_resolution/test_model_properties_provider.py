from __future__ import annotations

import logging
import random
from datetime import datetime

import pytest

from modelprops.config import NameCollisionPolicy, SerializationConfig
from modelprops.context import ResolutionContext
from modelprops.failures import CyclicUnwrapError, DuplicatePropertyNameError
from modelprops.introspection import DefaultMemberEnumerator
from modelprops.members import BeanProperty, RawField
from modelprops.naming import PropertyNamingStrategy
from modelprops.provider import ModelPropertiesProvider
from modelprops.resolved_types import AlternateTypeProvider

from dataset.example_models import (
    Colliding,
    Credentials,
    Invoice,
    Ledger,
    Level3,
    LinkedNode,
    Login,
    Person,
    Pet,
    PetPage,
    Point,
    Pose,
    Receipt,
    Refund,
    Renamed,
    Session,
    StampedPose,
    Temperature,
    Thermostat,
    Twice,
    Wrapper,
)


def names(properties):
    return [p.name for p in properties]


@pytest.mark.parametrize("given_context", [True, False])
def test_point_accessors(provider, read_context, given_context):
    context = read_context(Point) if given_context else None
    properties = provider.properties_for(Point, context)

    assert names(properties) == ["x", "y"]
    assert all(not p.is_hidden for p in properties)
    assert all(p.type.erased_type is int for p in properties)
    assert all(p.required for p in properties)
    assert properties[0].model_ref.type == "integer"


def test_point_as_input_uses_constructor_parameters(provider, write_context):
    properties = provider.properties_for(Point, write_context(Point))

    assert names(properties) == ["x", "y"]
    assert [p.position for p in properties] == [0, 1]


def test_unwrapped_member_is_flattened(provider, read_context):
    properties = provider.properties_for(Wrapper, read_context(Wrapper))
    assert names(properties) == ["x", "y"]


def test_nested_unwrap_accumulates_prefixes(provider, read_context):
    properties = provider.properties_for(StampedPose, read_context(StampedPose))

    assert names(properties) == [
        "pose_frame",
        "pose_position_x",
        "pose_position_y",
        "pose_position_z",
        "stamp",
    ]
    by_name = {p.name: p for p in properties}
    assert by_name["pose_position_z"].required is False
    assert by_name["pose_position_x"].required is True
    assert by_name["stamp"].model_ref.type == "date-time"


def test_unwrapped_accessor(provider, read_context):
    properties = provider.properties_for(Thermostat, read_context(Thermostat))
    assert names(properties) == ["target_celsius", "target_kelvin"]


def test_identical_flattened_properties_collapse(provider, read_context):
    properties = provider.properties_for(Twice, read_context(Twice))
    assert names(properties) == ["x", "y", "z"]


def test_cyclic_unwrap_raises(provider, read_context):
    with pytest.raises(CyclicUnwrapError) as error:
        provider.properties_for(LinkedNode, read_context(LinkedNode))
    assert "Cyclic unwrap" in str(error.value)


def test_unwrap_depth_is_bounded(type_resolver, read_context):
    shallow = ModelPropertiesProvider(
        config=SerializationConfig(max_unwrap_depth=2), type_resolver=type_resolver
    )
    with pytest.raises(CyclicUnwrapError) as error:
        shallow.properties_for(Level3, read_context(Level3))
    assert "maximum depth of 2" in str(error.value)


def test_deep_unwrap_within_bound(provider, read_context):
    assert names(provider.properties_for(Level3, read_context(Level3))) == ["depth"]


def test_hidden_field_is_removed(provider, read_context):
    properties = provider.properties_for(Credentials, read_context(Credentials))
    assert names(properties) == ["user"]


def test_hidden_accessor_is_removed(provider, read_context):
    properties = provider.properties_for(Session, read_context(Session))
    assert names(properties) == ["user"]


def test_hidden_parameter_is_removed(provider, write_context):
    properties = provider.properties_for(Login, write_context(Login))

    assert names(properties) == ["remember", "user"]
    assert {p.name: p.required for p in properties} == {"remember": False, "user": True}


def test_creator_parameters_describe_input(provider, write_context, read_context):
    written = provider.properties_for(Temperature, write_context(Temperature))
    read = provider.properties_for(Temperature, read_context(Temperature))

    assert names(written) == ["celsius"]
    assert written[0].description == "Degrees Celsius"
    assert names(read) == ["celsius", "kelvin"]


def test_private_field_backs_property(provider, read_context, write_context):
    read = provider.properties_for(Person, read_context(Person))
    written = provider.properties_for(Person, write_context(Person))

    assert names(read) == ["name"]
    assert read[0].description == "Full name"
    assert names(written) == ["name"]


def test_ambiguous_property_is_skipped(provider, read_context, caplog):
    properties = provider.properties_for(Renamed, read_context(Renamed))

    assert names(properties) == ["count"]
    assert any(
        r.levelno == logging.WARNING and "label" in r.getMessage() for r in caplog.records
    )


def test_name_collision_fails_by_default(provider, read_context):
    with pytest.raises(DuplicatePropertyNameError):
        provider.properties_for(Colliding, read_context(Colliding))


def test_name_collision_keep_first(type_resolver, read_context):
    lenient = ModelPropertiesProvider(
        config=SerializationConfig(name_collision_policy=NameCollisionPolicy.KEEP_FIRST),
        type_resolver=type_resolver,
    )
    properties = lenient.properties_for(Colliding, read_context(Colliding))

    assert names(properties) == ["label"]
    assert properties[0].type.erased_type is int


def test_generic_fields_are_substituted(provider, read_context):
    properties = provider.properties_for(PetPage, read_context(PetPage))
    items = properties[0]

    assert names(properties) == ["items", "total"]
    assert items.type.erased_type is list
    assert items.type.type_parameters == (Pet,)
    assert items.model_ref.is_collection
    assert items.model_ref.item_type == "Pet"


def test_field_metadata(provider, read_context):
    properties = {p.name: p for p in provider.properties_for(Pet, read_context(Pet))}

    assert properties["name"].description == "The name of the pet"
    assert properties["name"].example == "Rex"
    assert properties["status"].allowable_values.values == ("available", "pending", "sold")
    assert properties["size"].allowable_values.values == ("small", "large")
    assert properties["size"].type.erased_type is str
    assert properties["date_of_birth"].required is False
    assert properties["tags"].required is False
    assert properties["status"].required is True


def test_naming_strategy(type_resolver, read_context):
    camel = ModelPropertiesProvider(
        config=SerializationConfig(naming_strategy=PropertyNamingStrategy.LOWER_CAMEL_CASE),
        type_resolver=type_resolver,
    )
    assert names(camel.properties_for(Pet, read_context(Pet))) == [
        "dateOfBirth",
        "name",
        "size",
        "status",
        "tags",
    ]


def test_ignorable_types(provider, read_context):
    context = read_context(StampedPose).with_ignorable_types(datetime)
    properties = provider.properties_for(StampedPose, context)
    assert "stamp" not in names(properties)


def test_alternate_types(provider, read_context):
    context = read_context(
        StampedPose,
        alternate_type_provider=AlternateTypeProvider().add_rule(datetime, str),
    )
    stamp = [p for p in provider.properties_for(StampedPose, context) if p.name == "stamp"][0]

    assert stamp.type.erased_type is str
    assert stamp.model_ref.type == "string"


class PhantomEnumerator(DefaultMemberEnumerator):
    """
    Reports a field that the type does not have.
    """

    def describe(self, type_, direction):
        result = super().describe(type_, direction)
        result["ghost"] = BeanProperty(
            key="ghost",
            index=99,
            internal_name="ghost",
            fields=[RawField("ghost", type_.erased_type, int)],
        )
        return result


def test_member_that_cannot_be_located_is_skipped(type_resolver, read_context):
    phantom = ModelPropertiesProvider(
        type_resolver=type_resolver, member_enumerator=PhantomEnumerator()
    )
    assert names(phantom.properties_for(Pet, read_context(Pet))) == [
        "date_of_birth",
        "name",
        "size",
        "status",
        "tags",
    ]


class ShuffledEnumerator(DefaultMemberEnumerator):
    """
    Reports the properties in random order.
    """

    def describe(self, type_, direction):
        items = list(super().describe(type_, direction).items())
        random.Random(len(items)).shuffle(items)
        return dict(reversed(items))


@pytest.mark.parametrize("model", [Pet, StampedPose, Temperature, Twice])
def test_order_of_discovery_does_not_matter(provider, type_resolver, read_context, model):
    shuffled = ModelPropertiesProvider(
        type_resolver=type_resolver, member_enumerator=ShuffledEnumerator()
    )
    assert provider.properties_for(model, read_context(model)) == shuffled.properties_for(
        model, read_context(model)
    )


@pytest.mark.parametrize("model", [Pet, StampedPose, PetPage, Point])
def test_resolution_is_idempotent(provider, read_context, model):
    first = provider.properties_for(model, read_context(model))
    second = provider.properties_for(model, read_context(model))
    assert first == second
    assert first is not second


def test_getters_sharing_a_function_name(provider, read_context):
    properties = {p.name: p for p in provider.properties_for(Ledger, read_context(Ledger))}

    assert properties["owner"].type.erased_type is str
    assert properties["balance"].type.erased_type is int
    assert properties["balance"].model_ref.type == "integer"


def warnings_about(caplog, member):
    return [r for r in caplog.records if r.levelno == logging.WARNING and member in r.getMessage()]


def test_unresolvable_field_is_skipped(provider, read_context, write_context, caplog):
    read = provider.properties_for(Invoice, read_context(Invoice))
    written = provider.properties_for(Invoice, write_context(Invoice))

    assert names(read) == ["number"]
    assert read[0].type.erased_type is int
    assert read[0].required is True
    assert names(written) == ["number"]
    assert warnings_about(caplog, "Invoice.total")


def test_unresolvable_getter_is_skipped(provider, read_context, caplog):
    assert names(provider.properties_for(Receipt, read_context(Receipt))) == ["id"]
    assert warnings_about(caplog, "amount")


def test_unresolvable_parameter_is_skipped(provider, write_context, caplog):
    properties = provider.properties_for(Refund, write_context(Refund))

    assert names(properties) == ["reason"]
    assert properties[0].type.erased_type is str
    assert warnings_about(caplog, "Refund.__init__.amount")


def test_child_context_inherits_settings(type_resolver, read_context):
    parent = read_context(StampedPose, view=Pet).with_ignorable_types(datetime)
    child = ResolutionContext.from_parent(parent, type_resolver.resolve(Pose))

    assert child.parent is parent
    assert child.depth == 1
    assert child.unwrap_chain == (type_resolver.resolve(StampedPose), type_resolver.resolve(Pose))
    assert (child.direction, child.view, child.ignorable_types, child.documentation_type) == (
        parent.direction,
        parent.view,
        parent.ignorable_types,
        parent.documentation_type,
    )
