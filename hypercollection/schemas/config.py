"""
Special schemas for the configuration file and its properties
"""

from typing import Dict, Optional, Union

import pydantic

from ..collection import NullOrdering


class GeneralConfig(pydantic.BaseModel):
    default_limit: Optional[pydantic.NonNegativeInt] = None
    max_limit: Optional[pydantic.PositiveInt] = None
    null_ordering: NullOrdering = NullOrdering.LAST

    @pydantic.model_validator(mode="after")
    def enforce_limit_constraints(self) -> "GeneralConfig":
        if self.default_limit is not None and self.max_limit is not None and self.default_limit > self.max_limit:
            raise ValueError("Field 'default_limit' must not exceed 'max_limit'")
        return self


class ServerConfig(pydantic.BaseModel):
    host: str = "127.0.0.1"
    port: pydantic.conint(gt=0, lt=65536) = 8000
    public_base_url: Optional[pydantic.HttpUrl] = None


class DatabaseConfig(pydantic.BaseModel):
    connection: str = "sqlite://"
    debug_sql: bool = False


class LoggingConfig(pydantic.BaseModel):
    version: pydantic.conint(ge=1, le=1) = 1
    disable_existing_loggers: bool = False
    incremental: bool = False
    filters: Dict[str, Dict[str, Union[str, list]]] = {
        "collection_no_debug": {
            "()": "hypercollection.misc.logger.NoDebugFilter",
            "name": "hypercollection.collection"
        }
    }
    formatters: Dict[str, Dict[str, str]] = {
        "default": {
            "style": "{",
            "format": "{asctime}: hypercollection {process}: [{levelname}] {name}: {message}",
            "datefmt": "%d.%m.%Y %H:%M:%S"
        },
        "file": {
            "style": "{",
            "format": "{asctime} ({process}): [{levelname}] {name}: {message}",
            "datefmt": "%d.%m.%Y %H:%M"
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": "%(asctime)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
        }
    }
    loggers: Dict[str, dict] = {
        "uvicorn.access": {
            "handlers": ["access"],
            "propagate": False
        }
    }
    handlers: Dict[str, Dict[str, Union[str, list, bool]]] = {
        "default": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "default",
            "filters": ["collection_no_debug"]
        },
        "file": {
            "level": "DEBUG",
            "class": "logging.FileHandler",
            "filename": "./hypercollection.log",
            "formatter": "file",
            "delay": True
        },
        "access": {
            "level": "INFO",
            "class": "logging.FileHandler",
            "filename": "./access.log",
            "formatter": "access",
            "delay": True
        }
    }
    root: dict = {
        "level": "INFO",
        "handlers": ["default", "file"]
    }


class CoreConfig(pydantic.BaseModel):
    general: GeneralConfig = pydantic.Field(default_factory=GeneralConfig)
    server: ServerConfig = pydantic.Field(default_factory=ServerConfig)
    database: DatabaseConfig = pydantic.Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = pydantic.Field(default_factory=LoggingConfig)
