from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from typing_extensions import List, Optional

from .members import BeanProperty, CandidateMember

_WORD_BOUNDARY = re.compile(r"[_\-\s]+|(?<=[a-z0-9])(?=[A-Z])")


def _words(name: str) -> List[str]:
    return [w for w in _WORD_BOUNDARY.split(name) if w]


class PropertyNamingStrategy(Enum):
    """
    How implicit attribute names are turned into documented property names.
    """

    IDENTITY = "identity"
    LOWER_CAMEL_CASE = "lowerCamelCase"
    UPPER_CAMEL_CASE = "UpperCamelCase"
    SNAKE_CASE = "snake_case"
    KEBAB_CASE = "kebab-case"
    LOWER_CASE = "lowercase"

    def translate(self, name: str) -> str:
        words = _words(name)
        if self is PropertyNamingStrategy.IDENTITY or not words:
            return name
        match self:
            case PropertyNamingStrategy.LOWER_CAMEL_CASE:
                return words[0].lower() + "".join(w.capitalize() for w in words[1:])
            case PropertyNamingStrategy.UPPER_CAMEL_CASE:
                return "".join(w.capitalize() for w in words)
            case PropertyNamingStrategy.SNAKE_CASE:
                return "_".join(w.lower() for w in words)
            case PropertyNamingStrategy.KEBAB_CASE:
                return "-".join(w.lower() for w in words)
            case PropertyNamingStrategy.LOWER_CASE:
                return "".join(w.lower() for w in words)


@dataclass(frozen=True)
class BeanPropertyNamingStrategy:
    """
    Computes the documented name of a property. An explicit name always wins over the naming strategy.
    """

    naming_strategy: PropertyNamingStrategy = PropertyNamingStrategy.IDENTITY

    def name_for_serialization(self, bean_property: BeanProperty) -> str:
        return self._name(bean_property)

    def name_for_deserialization(self, bean_property: BeanProperty) -> str:
        return self._name(bean_property)

    def _name(self, bean_property: BeanProperty) -> str:
        if bean_property.explicit_name:
            return bean_property.explicit_name
        return self.naming_strategy.translate(bean_property.key)


def name(
    bean_property: BeanProperty,
    is_return_type: bool,
    naming_strategy: BeanPropertyNamingStrategy,
    previous: Optional[CandidateMember] = None,
) -> str:
    """
    :param bean_property: The property to name.
    :param is_return_type: Whether the model is documented as output.
    :param naming_strategy: The naming strategy in use.
    :param previous: The member of the enclosing unwrap, if the property is flattened into its parent.
    :return: The documented name, decorated with the prefix and suffix of the enclosing unwrap.
    """
    if is_return_type:
        result = naming_strategy.name_for_serialization(bean_property)
    else:
        result = naming_strategy.name_for_deserialization(bean_property)
    if previous is not None and previous.unwrapped is not None:
        return f"{previous.unwrapped.prefix}{result}{previous.unwrapped.suffix}"
    return result
