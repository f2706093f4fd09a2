import importlib.metadata
import logging

__version__ = importlib.metadata.version("modelprops")


logger = logging.Logger("modelprops")
logger.setLevel(logging.INFO)
