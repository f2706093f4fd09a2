from __future__ import annotations

import uuid
from collections.abc import Set as AbstractSet
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal

from typing_extensions import Any, Callable, Dict, Type

from .context import ResolutionContext
from .model import AllowableListValues, ModelRef
from .resolved_types import ResolvedType, TypeResolver

base_type_names: Dict[Type, str] = {
    int: "integer",
    float: "number",
    Decimal: "number",
    str: "string",
    bytes: "string",
    bool: "boolean",
    datetime: "date-time",
    date: "date",
    time: "string",
    uuid.UUID: "uuid",
    object: "object",
    type(None): "void",
}
"""
Schema names of types that are documented inline rather than as models.
"""


@dataclass
class TypeNameExtractor:
    """
    Computes the schema name of a resolved type.
    Generic models are named after their arguments, e.g. ``Page«Pet»``.
    """

    type_resolver: TypeResolver = field(default_factory=TypeResolver)
    type_names: Dict[Type, str] = field(default_factory=lambda: dict(base_type_names))

    def type_name(self, type_: ResolvedType, context: ResolutionContext) -> str:
        if type_.is_container:
            return "Set" if type_.erased_type in (set, frozenset, AbstractSet) else "List"
        if type_.is_map:
            return "Map"
        if type_.erased_type in self.type_names:
            return self.type_names[type_.erased_type]
        if type_.is_enum:
            return "string"
        name = getattr(type_.erased_type, "__name__", str(type_.erased_type))
        if not type_.type_parameters:
            return name
        arguments = ",".join(
            self.type_name(self.type_resolver.resolve(p), context) for p in type_.type_parameters
        )
        return f"{name}«{arguments}»"

    def model_ref(self, type_: ResolvedType, context: ResolutionContext) -> ModelRef:
        if type_.is_map:
            value = type_.type_parameters[1] if len(type_.type_parameters) > 1 else object
            return ModelRef(
                "Map", item_model=self.model_ref(self.type_resolver.resolve(value), context), is_map=True
            )
        if type_.is_container:
            item = type_.type_parameters[0] if type_.type_parameters else object
            return ModelRef(
                self.type_name(type_, context),
                item_model=self.model_ref(self.type_resolver.resolve(item), context),
            )
        allowable_values = None
        if type_.is_enum:
            allowable_values = AllowableListValues(tuple(m.value for m in type_.erased_type))
        return ModelRef(self.type_name(type_, context), allowable_values=allowable_values)


def model_ref_factory(
    context: ResolutionContext, type_name_extractor: TypeNameExtractor
) -> Callable[[ResolvedType], ModelRef]:
    """
    :return: A function stamping model references for the properties of models resolved in `context`.
    """

    def factory(type_: Any) -> ModelRef:
        return type_name_extractor.model_ref(type_, context)

    return factory
