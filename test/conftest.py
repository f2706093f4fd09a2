import logging

import pytest

from modelprops.context import ResolutionContext
from modelprops.provider import ModelPropertiesProvider
from modelprops.resolved_types import TypeResolver


@pytest.fixture
def type_resolver() -> TypeResolver:
    return TypeResolver()


@pytest.fixture
def provider(type_resolver) -> ModelPropertiesProvider:
    return ModelPropertiesProvider(type_resolver=type_resolver)


@pytest.fixture
def read_context(type_resolver):
    """
    Factory for contexts documenting a type as output.
    """

    def factory(type_, **kwargs) -> ResolutionContext:
        return ResolutionContext.return_value(type_resolver.resolve(type_), **kwargs)

    return factory


@pytest.fixture
def write_context(type_resolver):
    """
    Factory for contexts documenting a type as input.
    """

    def factory(type_, **kwargs) -> ResolutionContext:
        return ResolutionContext.input_param(type_resolver.resolve(type_), **kwargs)

    return factory


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="modelprops")
