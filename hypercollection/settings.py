"""
hypercollection settings provider
"""

import os
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .schemas import config


SETTINGS_CREATE_NONEXISTENT: bool = False
"""
switch to create a new configuration file if no existing file has been found
"""

CONFIG_PATHS: List[str] = ["config.json", os.path.join("..", "config.json")]
"""
list of search paths for the config file, can be overwritten by the env variable ``CONFIG_PATH``
"""

ENV_PREFIX: str = "HYPERCOLLECTION_"

if os.environ.get("CONFIG_PATH"):
    CONFIG_PATHS = [os.environ.get("CONFIG_PATH")]

logger = logging.getLogger(__name__)


class JsonFileSettingsSource(PydanticBaseSettingsSource):
    """
    Settings source providing the content of the first existing config file in ``CONFIG_PATHS``
    """

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return read_settings_from_file().get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return read_settings_from_file()


class Settings(BaseSettings, config.CoreConfig):
    """
    hypercollection settings

    Values are taken from keyword arguments first, then from environment
    variables (prefixed with ``HYPERCOLLECTION_``, nested sections separated
    by ``__``, e.g. ``HYPERCOLLECTION_GENERAL__MAX_LIMIT``), then from the
    ``.env`` file, then from the JSON config file and finally the defaults.
    Do not change the settings at runtime, since this might lead to
    unspecified behavior. Always restart the server after changing them.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def settings_customise_sources(
            cls,
            settings_cls: Type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, dotenv_settings, JsonFileSettingsSource(settings_cls), file_secret_settings


def store_configuration(conf: Optional[config.CoreConfig] = None, path: Optional[str] = None) -> config.CoreConfig:
    p = path or os.path.abspath(CONFIG_PATHS[0])
    conf = conf or config.CoreConfig()
    with open(p, "w", encoding="UTF-8") as f:
        json.dump(conf.model_dump(mode="json"), f, indent=4)
    logger.info(f"A new config file has been created as {p!r}.")
    return conf


def read_settings_from_file() -> Dict[str, Any]:
    for path in CONFIG_PATHS:
        if os.path.exists(path):
            with open(path, "r", encoding="UTF-8") as file:
                return json.load(file)

    if SETTINGS_CREATE_NONEXISTENT:
        return store_configuration().model_dump(mode="json")
    return {}


def get_default_config() -> Dict[str, Any]:
    return config.CoreConfig().model_dump(mode="json")
