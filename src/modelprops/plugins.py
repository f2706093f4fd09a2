from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from importlib.metadata import entry_points

from typing_extensions import List

from . import logger
from .context import DocumentationType, ModelPropertyContext
from .model import ModelProperty

PLUGIN_ENTRY_POINT_GROUP = "modelprops.plugins"
"""
Entry-point group under which third party packages register property plugins.
"""


@dataclass
class ModelPropertyBuilderPlugin(ABC):
    """
    Adjusts a property before it is documented. Plugins run in registration order and may change every value of the
    property through the builder of the context.
    """

    def supports(self, documentation_type: DocumentationType) -> bool:
        return True

    @abstractmethod
    def apply(self, context: ModelPropertyContext) -> None:
        raise NotImplementedError


@dataclass
class HiddenPropertyPlugin(ModelPropertyBuilderPlugin):
    """
    Hides properties whose metadata says so, for field, accessor and parameter based properties alike.
    """

    def apply(self, context: ModelPropertyContext) -> None:
        hidden = context.bean_property.directives.metadata.hidden
        if hidden is not None:
            context.builder.is_hidden(hidden)


@dataclass
class SchemaPluginsManager:
    """
    Runs the property plugins that support the documentation type of a property.
    """

    property_plugins: List[ModelPropertyBuilderPlugin] = field(
        default_factory=lambda: [HiddenPropertyPlugin()]
    )

    def register(self, plugin: ModelPropertyBuilderPlugin) -> SchemaPluginsManager:
        self.property_plugins.append(plugin)
        return self

    def property(self, context: ModelPropertyContext) -> ModelProperty:
        """
        :param context: The property in progress.
        :return: The property as built after every supporting plugin ran.
        """
        for plugin in self.property_plugins:
            if plugin.supports(context.documentation_type):
                plugin.apply(context)
        return context.builder.build()

    @classmethod
    def from_entry_points(cls, group: str = PLUGIN_ENTRY_POINT_GROUP) -> SchemaPluginsManager:
        """
        Create a manager holding the bundled plugins followed by the plugins registered under an entry-point group.
        Each entry point has to load a plugin class or a callable returning a plugin.
        Entry points that fail to load are logged and skipped.
        """
        manager = cls()
        for entry_point in entry_points(group=group):
            try:
                plugin = entry_point.load()()
            except Exception as e:
                logger.error(f"Failed to load property plugin '{entry_point.name}': {e}")
                continue
            if not isinstance(plugin, ModelPropertyBuilderPlugin):
                logger.error(
                    f"Entry point '{entry_point.name}' returned {type(plugin)}, "
                    f"expected a ModelPropertyBuilderPlugin"
                )
                continue
            logger.info(f"Loaded property plugin {entry_point.name}")
            manager.register(plugin)
        return manager
