from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field

from typing_extensions import Any, Dict, List, Optional, assert_never

from .annotations import Unwrapped
from .builders import (
    BaseModelProperty,
    BeanModelProperty,
    FieldModelProperty,
    ParameterModelProperty,
)
from .config import NameCollisionPolicy, SerializationConfig
from .context import ModelPropertyContext, ResolutionContext
from .failures import (
    AmbiguousPropertyError,
    CyclicUnwrapError,
    DuplicatePropertyNameError,
)
from .introspection import DefaultMemberEnumerator, MemberEnumerator
from .locators import AccessorLocator, FactoryMethodLocator, FieldLocator
from .members import (
    AccessorMember,
    BeanProperty,
    CandidateMember,
    Direction,
    FieldMember,
    ParameterMember,
    factory_method_of,
)
from .model import ModelProperty
from .naming import BeanPropertyNamingStrategy, name
from .plugins import SchemaPluginsManager
from .resolved_types import ResolvedType, TypeResolver
from .type_names import TypeNameExtractor, model_ref_factory
from .views import should_include_due_to_view

logger = logging.getLogger(__name__)


@dataclass
class ModelPropertiesProvider:
    """
    Resolves the documented properties of a model.

    Properties are discovered from getters, fields and creator parameters, filtered by the active view, flattened
    where a member is unwrapped, named, and passed through the property plugins. Members that cannot be resolved are
    left out rather than failing the whole model.

    Example:
        >>> @dataclass
        ... class Point:
        ...     x: int
        ...     y: int
        >>> provider = ModelPropertiesProvider()
        >>> [p.name for p in provider.properties_for(Point)]
        ['x', 'y']
    """

    config: SerializationConfig = field(default_factory=SerializationConfig)
    type_resolver: TypeResolver = field(default_factory=TypeResolver)
    member_enumerator: Optional[MemberEnumerator] = None
    """
    Discovers the logical properties of a type. Defaults to a :class:`DefaultMemberEnumerator` following the config.
    """
    accessors: Optional[AccessorLocator] = None
    fields: Optional[FieldLocator] = None
    factory_methods: Optional[FactoryMethodLocator] = None
    schema_plugins_manager: SchemaPluginsManager = field(
        default_factory=SchemaPluginsManager
    )
    type_name_extractor: Optional[TypeNameExtractor] = None
    naming_strategy: BeanPropertyNamingStrategy = field(init=False)

    def __post_init__(self):
        if self.member_enumerator is None:
            self.member_enumerator = DefaultMemberEnumerator(
                self.config.implicit_constructor_parameters
            )
        if self.accessors is None:
            self.accessors = AccessorLocator(self.type_resolver)
        if self.fields is None:
            self.fields = FieldLocator(self.type_resolver)
        if self.factory_methods is None:
            self.factory_methods = FactoryMethodLocator(
                self.type_resolver, self.config.implicit_constructor_parameters
            )
        if self.type_name_extractor is None:
            self.type_name_extractor = TypeNameExtractor(self.type_resolver)
        self.naming_strategy = BeanPropertyNamingStrategy(self.config.naming_strategy)

    def properties_for(
        self, type_: Any, context: Optional[ResolutionContext] = None
    ) -> List[ModelProperty]:
        """
        Resolve the documented properties of a type.

        :param type_: A class, a parametrized generic or a :class:`ResolvedType`.
        :param context: How the type is used. Defaults to documenting it as output.
        :return: The visible properties, sorted by name.
        :raises CyclicUnwrapError: If unwrapped members form a cycle or nest deeper than configured.
        :raises DuplicatePropertyNameError: If two properties share a name and the config says to fail.
        """
        resolved = self.type_resolver.resolve(type_)
        if context is None:
            context = ResolutionContext.return_value(resolved)
        properties = self._properties_with_previous(resolved, context, None)
        visible = [p for p in properties if not p.is_hidden]
        return self._sorted_by_name(visible, resolved)

    def _properties_with_previous(
        self,
        type_: ResolvedType,
        context: ResolutionContext,
        previous: Optional[CandidateMember],
    ) -> List[ModelProperty]:
        properties: List[ModelProperty] = []
        for key, bean_property in self.member_enumerator.describe(type_, context.direction).items():
            logger.debug(f"Reading property {key}")
            member = self._safe_primary_member(bean_property, context.direction)
            if member is None:
                continue
            properties.extend(
                self.candidate_properties(type_, member, bean_property, previous, context)
            )
        return properties

    @staticmethod
    def _safe_primary_member(
        bean_property: BeanProperty, direction: Direction
    ) -> Optional[CandidateMember]:
        try:
            return bean_property.primary_member(direction)
        except AmbiguousPropertyError as e:
            logger.warning(f"Unable to get unique property. {e}")
            return None

    def candidate_properties(
        self,
        type_: ResolvedType,
        member: CandidateMember,
        bean_property: BeanProperty,
        previous: Optional[CandidateMember],
        context: ResolutionContext,
    ) -> List[ModelProperty]:
        """
        Resolve the properties one candidate member contributes: none if it is filtered or cannot be located, the
        flattened properties of its type if it is unwrapped, one property otherwise.
        """
        if not should_include_due_to_view(bean_property, context):
            return []
        property_name = name(
            bean_property, context.is_return_type, self.naming_strategy, previous
        )
        common = dict(
            name=property_name,
            type_resolver=self.type_resolver,
            alternate_type_provider=context.alternate_type_provider,
            bean_property=bean_property,
        )
        annotated_element = None
        match member:
            case AccessorMember(function=function, property_name=attribute_name):
                method = self.accessors.find(type_, function, attribute_name)
                if method is None:
                    return self._lookup_miss(type_, member)
                model_property = BeanModelProperty(method=method, **common)
            case FieldMember(field_name=field_name):
                resolved_field = self.fields.find(type_, field_name)
                if resolved_field is None:
                    return self._lookup_miss(type_, member)
                model_property = FieldModelProperty(field=resolved_field, **common)
                annotated_element = resolved_field.raw_member
            case ParameterMember(parameter=parameter):
                constructor = self.factory_methods.find(type_, factory_method_of(member))
                if constructor is None or parameter.name not in constructor.parameter_names:
                    return self._lookup_miss(type_, member)
                model_property = ParameterModelProperty(
                    constructor=constructor, parameter=parameter, **common
                )
            case _:
                assert_never(member)

        member_type = model_property.real_type
        if context.can_ignore(member_type):
            return []
        if member.is_unwrapped:
            return self._unwrap(member_type, member, previous, context)
        return [self._model_property(model_property, annotated_element, context)]

    @staticmethod
    def _lookup_miss(type_: ResolvedType, member: CandidateMember) -> List[ModelProperty]:
        logger.debug(f"Could not locate member {member.name} of {type_.name}, skipping it")
        return []

    def _unwrap(
        self,
        member_type: ResolvedType,
        member: CandidateMember,
        previous: Optional[CandidateMember],
        context: ResolutionContext,
    ) -> List[ModelProperty]:
        child_context = ResolutionContext.from_parent(context, member_type)
        chain = child_context.unwrap_chain
        if member_type in chain[:-1] or child_context.depth > self.config.max_unwrap_depth:
            raise CyclicUnwrapError(
                tuple(t.hint for t in chain), self.config.max_unwrap_depth
            )
        logger.debug(f"Unwrapping {member.name} of type {member_type.name}")
        return self._properties_with_previous(
            member_type, child_context, self._enclosing_unwrap(previous, member)
        )

    @staticmethod
    def _enclosing_unwrap(
        previous: Optional[CandidateMember], member: CandidateMember
    ) -> CandidateMember:
        """
        Nested unwraps accumulate their prefixes and suffixes, the outermost prefix first and the outermost suffix last.
        """
        if previous is None or previous.unwrapped is None:
            return member
        combined = Unwrapped(
            prefix=previous.unwrapped.prefix + member.unwrapped.prefix,
            suffix=member.unwrapped.suffix + previous.unwrapped.suffix,
        )
        return dataclasses.replace(member, unwrapped=combined)

    def _model_property(
        self,
        model_property: BaseModelProperty,
        annotated_element: Any,
        context: ResolutionContext,
    ) -> ModelProperty:
        logger.debug(f"Adding property {model_property.name} to model")
        property_context = ModelPropertyContext(
            model_property.builder(),
            model_property.bean_property,
            self.type_resolver,
            context.documentation_type,
            annotated_element,
        )
        return self.schema_plugins_manager.property(property_context).update_model_ref(
            model_ref_factory(context, self.type_name_extractor)
        )

    def _sorted_by_name(
        self, properties: List[ModelProperty], type_: ResolvedType
    ) -> List[ModelProperty]:
        """
        Sort properties by name. Equal properties collapse into one, different properties with the same name are
        handled according to the name collision policy.
        """
        by_name: Dict[str, ModelProperty] = {}
        for candidate in sorted(properties, key=_precedence):
            existing = by_name.get(candidate.name)
            if existing is None:
                by_name[candidate.name] = candidate
                continue
            if existing == candidate:
                continue
            if self.config.name_collision_policy is NameCollisionPolicy.FAIL:
                raise DuplicatePropertyNameError(type_.name, candidate.name)
            logger.warning(
                f"Model {type_.name} resolves more than one property named "
                f"'{candidate.name}', keeping the one at position {existing.position}"
            )
        return [by_name[n] for n in sorted(by_name)]


def _precedence(model_property: ModelProperty):
    return (
        model_property.name,
        model_property.position,
        model_property.qualified_type or "",
        repr(model_property),
    )
