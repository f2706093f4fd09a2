from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .naming import PropertyNamingStrategy


class NameCollisionPolicy(Enum):
    """
    What to do when two different properties of one model end up with the same name.
    """

    FAIL = "fail"
    """
    Raise a :class:`modelprops.failures.DuplicatePropertyNameError`.
    """
    KEEP_FIRST = "keep_first"
    """
    Keep the property with the lowest position and log a warning.
    """


@dataclass(frozen=True)
class SerializationConfig:
    """
    Read-only configuration shared by every resolution of a provider.
    """

    naming_strategy: PropertyNamingStrategy = PropertyNamingStrategy.IDENTITY
    max_unwrap_depth: int = 32
    """
    The deepest chain of nested unwrapped members that is resolved.
    """
    name_collision_policy: NameCollisionPolicy = NameCollisionPolicy.FAIL
    implicit_constructor_parameters: bool = True
    """
    Whether ``__init__`` parameters of non-dataclasses describe the input form when no creator is declared.
    """
