from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from typing_extensions import Any, Callable, Optional, Tuple, Union

from .resolved_types import ResolvedType


@dataclass(frozen=True)
class AllowableListValues:
    """
    The property only accepts one of the listed values.
    """

    values: Tuple[Any, ...]
    value_type: str = "LIST"


@dataclass(frozen=True)
class AllowableRangeValues:
    """
    The property accepts values between min and max.
    """

    min: Optional[str] = None
    max: Optional[str] = None
    exclusive_min: bool = False
    exclusive_max: bool = False


AllowableValues = Union[AllowableListValues, AllowableRangeValues]


@dataclass(frozen=True)
class ModelRef:
    """
    Reference to the schema of a property type, either by name or, for collections and maps, by item type.
    """

    type: str
    item_model: Optional[ModelRef] = None
    is_map: bool = False
    allowable_values: Optional[AllowableValues] = None

    @property
    def is_collection(self) -> bool:
        return self.item_model is not None and not self.is_map

    @property
    def item_type(self) -> Optional[str]:
        return self.item_model.type if self.item_model is not None else None


@dataclass(frozen=True)
class ModelProperty:
    """
    A documented property of a model. Immutable once produced by the provider.
    """

    name: str
    type: ResolvedType
    qualified_type: str
    position: int = 0
    required: bool = False
    description: Optional[str] = None
    allowable_values: Optional[AllowableValues] = None
    example: Any = None
    is_hidden: bool = False
    pattern: Optional[str] = None
    model_ref: Optional[ModelRef] = None
    """
    The schema-type reference, stamped after the plugins ran.
    """

    def update_model_ref(
        self, factory: Callable[[ResolvedType], ModelRef]
    ) -> ModelProperty:
        """
        :param factory: Computes a model reference for a resolved type.
        :return: A copy of this property carrying the model reference of its type.
        """
        return dataclasses.replace(self, model_ref=factory(self.type))


@dataclass
class ModelPropertyBuilder:
    """
    The mutable form of a :class:`ModelProperty` that plugins work on.
    Every setter returns the builder. Setting ``None`` keeps the current value.
    """

    _name: Optional[str] = None
    _type: Optional[ResolvedType] = None
    _qualified_type: Optional[str] = None
    _position: int = 0
    _required: bool = False
    _description: Optional[str] = None
    _allowable_values: Optional[AllowableValues] = None
    _example: Any = None
    _is_hidden: bool = False
    _pattern: Optional[str] = None

    def _set(self, attribute: str, value: Any) -> ModelPropertyBuilder:
        if value is not None:
            setattr(self, attribute, value)
        return self

    def name(self, name: Optional[str]) -> ModelPropertyBuilder:
        return self._set("_name", name)

    def type(self, type_: Optional[ResolvedType]) -> ModelPropertyBuilder:
        return self._set("_type", type_)

    def qualified_type(self, qualified_type: Optional[str]) -> ModelPropertyBuilder:
        return self._set("_qualified_type", qualified_type)

    def position(self, position: Optional[int]) -> ModelPropertyBuilder:
        return self._set("_position", position)

    def required(self, required: Optional[bool]) -> ModelPropertyBuilder:
        return self._set("_required", required)

    def description(self, description: Optional[str]) -> ModelPropertyBuilder:
        return self._set("_description", description)

    def allowable_values(
        self, allowable_values: Optional[AllowableValues]
    ) -> ModelPropertyBuilder:
        return self._set("_allowable_values", allowable_values)

    def example(self, example: Any) -> ModelPropertyBuilder:
        return self._set("_example", example)

    def is_hidden(self, is_hidden: Optional[bool]) -> ModelPropertyBuilder:
        return self._set("_is_hidden", is_hidden)

    def pattern(self, pattern: Optional[str]) -> ModelPropertyBuilder:
        return self._set("_pattern", pattern)

    @property
    def current_name(self) -> Optional[str]:
        return self._name

    @property
    def current_type(self) -> Optional[ResolvedType]:
        return self._type

    @property
    def hidden(self) -> bool:
        return self._is_hidden

    def build(self) -> ModelProperty:
        return ModelProperty(
            name=self._name,
            type=self._type,
            qualified_type=self._qualified_type,
            position=self._position,
            required=self._required,
            description=self._description,
            allowable_values=self._allowable_values,
            example=self._example,
            is_hidden=self._is_hidden,
            pattern=self._pattern,
        )
