from __future__ import annotations

from dataclasses import dataclass

from typing_extensions import Any, Tuple, Type


@dataclass
class ModelPropsError(Exception):
    """
    Base class of all errors raised while resolving model properties.
    """

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return self.__class__.__name__


@dataclass
class AmbiguousPropertyError(ModelPropsError):
    """
    Raised when a logical property has more than one raw member of the kind that should be its primary member,
    for instance two fields that are both renamed to the same public name.
    """

    key: str
    """
    The canonical key of the property.
    """
    members: Tuple[str, ...]
    """
    Names of the conflicting raw members.
    """

    @property
    def message(self) -> str:
        return (
            f"Conflicting definitions for property '{self.key}': "
            f"{', '.join(self.members)}"
        )


@dataclass
class CyclicUnwrapError(ModelPropsError):
    """
    Raised when unwrapping members re-enters a type that is already being unwrapped, or when the unwrap chain grows
    deeper than the configured bound.
    """

    chain: Tuple[Type, ...]
    """
    The types on the unwrap chain, outermost first.
    """
    max_depth: int

    @property
    def message(self) -> str:
        path = " -> ".join(getattr(t, "__name__", str(t)) for t in self.chain)
        if len(self.chain) - 1 > self.max_depth:
            return f"Unwrap chain exceeds the maximum depth of {self.max_depth}: {path}"
        return f"Cyclic unwrap detected: {path}"


@dataclass
class DuplicatePropertyNameError(ModelPropsError):
    """
    Raised when two different properties of one model end up with the same final name.
    """

    owner: Any
    name: str

    @property
    def message(self) -> str:
        return f"Model {self.owner} resolves more than one property named '{self.name}'"


@dataclass
class TypeResolutionError(ModelPropsError, TypeError):
    """
    Error raised when the type hints of a class or member cannot be evaluated.
    """

    name: str

    @property
    def message(self) -> str:
        return f"Could not resolve type for {self.name}"
