"""Configuration loader."""

import logging
from typing import Any, Optional

import yaml

from models.config import (
    Configuration,
    DataStoreConfiguration,
    LLMConfiguration,
    ResponseCacheConfiguration,
    ServiceConfiguration,
)

logger = logging.getLogger(__name__)


class LogicError(Exception):
    """Error in application logic."""


class AppConfig:
    """Singleton class to load and store the configuration."""

    _instance = None

    def __new__(cls, *args: Any, **kwargs: Any) -> "AppConfig":
        """Create a new instance of the class."""
        if not isinstance(cls._instance, cls):
            cls._instance = super().__new__(cls, *args, **kwargs)
        return cls._instance

    def __init__(self) -> None:
        """Initialize the class instance."""
        self._configuration: Optional[Configuration] = None

    def load_configuration(self, filename: str) -> None:
        """Load configuration from YAML file.

        An empty file yields the default configuration. Credentials are not
        logged, only the file name.

        Parameters:
            filename (str): Path to the YAML configuration file to load.
        """
        with open(filename, encoding="utf-8") as fin:
            config_dict = yaml.safe_load(fin) or {}
        logger.info("Loaded configuration from %s", filename)
        self.init_from_dict(config_dict)

    def init_from_dict(self, config_dict: dict[Any, Any]) -> None:
        """Initialize configuration from a dictionary.

        Parameters:
            config_dict (dict[Any, Any]): Mapping of configuration values
            (typically parsed from YAML).
        """
        self._configuration = Configuration(**config_dict)

    @property
    def is_loaded(self) -> bool:
        """Return True once configuration was loaded."""
        return self._configuration is not None

    @property
    def configuration(self) -> Configuration:
        """Return the whole configuration.

        Raises:
            LogicError: If the configuration has not been loaded.
        """
        if self._configuration is None:
            raise LogicError("logic error: configuration is not loaded")
        return self._configuration

    @property
    def service_configuration(self) -> ServiceConfiguration:
        """Return service configuration.

        Raises:
            LogicError: If the configuration has not been loaded.
        """
        return self.configuration.service

    @property
    def llm_configuration(self) -> LLMConfiguration:
        """Return LLM providers configuration.

        Raises:
            LogicError: If the configuration has not been loaded.
        """
        return self.configuration.llm

    @property
    def cache_configuration(self) -> ResponseCacheConfiguration:
        """Return response cache configuration.

        Raises:
            LogicError: If the configuration has not been loaded.
        """
        return self.configuration.cache

    @property
    def data_store_configuration(self) -> DataStoreConfiguration:
        """Return record store configuration.

        Raises:
            LogicError: If the configuration has not been loaded.
        """
        return self.configuration.data_store


configuration: AppConfig = AppConfig()
