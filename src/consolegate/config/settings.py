"""Configuration management for consolegate.

Loads settings from a YAML configuration file with environment variable
overrides. Supports .env files and the unprefixed variables used by
existing deployments (HOST, PORT, CONSOLE_HOST, CONSOLE_PORT).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/consolegate.yaml")


class ServerConfig(BaseModel):
    host: str = Field(default="localhost")
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    welcome_message: str = Field(default="Welcome to consolegate")


class PublicConfig(BaseModel):
    """Where clients reach this gateway; embedded in /add codes."""

    host: str | None = Field(default=None)
    port: int | None = Field(default=None, ge=1, le=65535)


class UpstreamConfig(BaseModel):
    port: int = Field(default=443, ge=1, le=65535, description="Fixed console port on every host")
    verify_tls: bool = Field(default=False)
    connect_timeout: float = Field(default=10.0, gt=0)
    handshake_timeout: float | None = Field(default=30.0, gt=0)
    read_chunk_size: int = Field(default=65536, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


# env var -> (section, field)
UNPREFIXED_VARS = {
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "CONSOLE_HOST": ("public", "host"),
    "CONSOLE_PORT": ("public", "port"),
}


class UnprefixedEnvSettingsSource(PydanticBaseSettingsSource):
    """Reads HOST, PORT, CONSOLE_HOST and CONSOLE_PORT into nested sections.

    These names predate the CONSOLEGATE_ prefix. They are looked up in the
    process environment first, then in the settings' env file.
    """

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # values are assembled per section in __call__
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        values: dict[str, str | None] = {}
        env_file = self.config.get("env_file")
        if env_file and Path(env_file).is_file():
            values.update(dotenv_values(env_file, encoding=self.config.get("env_file_encoding")))
        values.update(os.environ)

        data: dict[str, dict[str, str]] = {}
        for var, (section, field) in UNPREFIXED_VARS.items():
            value = values.get(var)
            if value:
                data.setdefault(section, {})[field] = value
        return data


class Settings(BaseSettings):
    """Root configuration for the console gateway.

    Sources, highest priority first: init kwargs, CONSOLEGATE_* env vars,
    CONSOLEGATE_* entries in .env, unprefixed env vars (then .env), the
    YAML file named by ``yaml_file``, defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONSOLEGATE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    public: PublicConfig = Field(default_factory=PublicConfig)
    upstream: UpstreamConfig = Field(default_factory=UpstreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            UnprefixedEnvSettingsSource(settings_cls),
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.is_file():
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    class FileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=path)

    return FileSettings()
