"""Configuration loading and validation."""

import os
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class ServerConfig(BaseModel):
    """HTTP/WebSocket server configuration."""

    host: str = "0.0.0.0"
    port: Annotated[int, Field(ge=1, le=65535)] = 3000
    static_dir: Path = Path("./public")


class LLMConfig(BaseModel):
    """Generation provider configuration.

    A provider is available when its API key is set. Nothing else is checked.
    """

    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    google_api_key: SecretStr | None = None
    huggingface_api_key: SecretStr | None = None

    openai_model: str = "gpt-3.5-turbo"
    anthropic_model: str = "claude-3-5-haiku-latest"
    gemini_model: str = "gemini-2.0-flash"
    huggingface_model: str = "microsoft/DialoGPT-medium"

    timeout_seconds: Annotated[float, Field(gt=0.0)] = 10.0
    max_tokens: Annotated[int, Field(ge=1)] = 150
    temperature: Annotated[float, Field(ge=0.0, le=2.0)] = 0.7


class GateConfig(BaseModel):
    """Response gate configuration."""

    idle_prob: Annotated[float, Field(ge=0.0, le=1.0)] = 0.05


class ContextConfig(BaseModel):
    """Conversation context store configuration."""

    max_history: Annotated[int, Field(ge=1)] = 10
    sweep_interval_seconds: Annotated[float, Field(gt=0.0)] = 3600.0
    max_idle_seconds: Annotated[float, Field(gt=0.0)] = 3600.0


class TypingConfig(BaseModel):
    """Artificial delays that emulate the assistant typing."""

    pre_delay_seconds: Annotated[float, Field(ge=0.0)] = 0.5
    post_delay_min_seconds: Annotated[float, Field(ge=0.0)] = 1.5
    post_delay_max_seconds: Annotated[float, Field(ge=0.0)] = 3.0
    welcome_delay_seconds: Annotated[float, Field(ge=0.0)] = 2.0

    @model_validator(mode="after")
    def _check_post_delay_range(self) -> "TypingConfig":
        if self.post_delay_max_seconds < self.post_delay_min_seconds:
            raise ValueError("post_delay_max_seconds must be >= post_delay_min_seconds")
        return self


class _YamlSource(YamlConfigSettingsSource):
    """YAML file source that skips empty sections."""

    def __call__(self) -> dict[str, Any]:
        # "llm:" with no values parses as None
        return {k: v for k, v in super().__call__().items() if v is not None}


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    assistant_name: str = "ChatBot AI"
    server: ServerConfig = Field(default_factory=ServerConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    gate: GateConfig = Field(default_factory=GateConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    typing: TypingConfig = Field(default_factory=TypingConfig)

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
            _YamlSource(settings_cls),
            file_secret_settings,
        )


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (RELAY_* prefix)
    2. YAML config file
    3. Default values

    Args:
        config_path: Path to YAML config file. If None, tries ./config.yaml

    Returns:
        Validated configuration object
    """
    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    class FileConfig(Config):
        # A missing file contributes nothing
        model_config = SettingsConfigDict(yaml_file=config_path)

    return FileConfig()


def load_api_keys_from_env(config: Config) -> Config:
    """Fill unset API keys and the port from the conventional env variables."""
    env_keys = {
        "openai_api_key": ("OPENAI_API_KEY",),
        "anthropic_api_key": ("ANTHROPIC_API_KEY",),
        "google_api_key": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
        "huggingface_api_key": ("HUGGINGFACE_API_KEY",),
    }
    for field_name, names in env_keys.items():
        if getattr(config.llm, field_name):
            continue
        for name in names:
            key = os.getenv(name)
            if key:
                setattr(config.llm, field_name, SecretStr(key))
                break

    port = os.getenv("PORT")
    if port and port.isdigit():
        config.server.port = int(port)

    return config
