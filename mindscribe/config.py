"""
Configuration for MindScribe.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AutosaveConfig(BaseModel):
    """Debounced autosave configuration."""

    delay_ms: int = Field(default=1000, ge=0)
    # How long "saved" is shown before the status falls back to idle
    saved_linger_ms: int = Field(default=2000, ge=0)


class ChatConfig(BaseModel):
    """Chat session configuration."""

    context_limit: int = Field(default=5, ge=0)
    # Off when the inference backend stores finished replies itself
    persist_assistant_turns: bool = True


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "ollama"
    model: str = "gemma3:4b"
    base_url: str = "http://localhost:11434"
    temperature: float = 0.7
    top_p: float = 0.9
    max_tokens: int = 512
    timeout: float = 120.0


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    autosave: AutosaveConfig = Field(default_factory=AutosaveConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            MINDSCRIBE_AUTOSAVE_DELAY_MS: Debounce delay for autosave
            MINDSCRIBE_AUTOSAVE_SAVED_LINGER_MS: Time "saved" stays visible
            MINDSCRIBE_CHAT_CONTEXT_LIMIT: Prior turns sent with each message
            MINDSCRIBE_LLM_PROVIDER: LLM provider (ollama)
            MINDSCRIBE_LLM_MODEL: LLM model name
            MINDSCRIBE_LLM_BASE_URL: LLM base URL
            MINDSCRIBE_LOG_LEVEL: Log level
        """
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None or value == "":
                return default
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            autosave=AutosaveConfig(
                delay_ms=get_env("MINDSCRIBE_AUTOSAVE_DELAY_MS", 1000),
                saved_linger_ms=get_env("MINDSCRIBE_AUTOSAVE_SAVED_LINGER_MS", 2000),
            ),
            chat=ChatConfig(
                context_limit=get_env("MINDSCRIBE_CHAT_CONTEXT_LIMIT", 5),
                persist_assistant_turns=get_env("MINDSCRIBE_CHAT_PERSIST_ASSISTANT_TURNS", True),
            ),
            llm=LLMConfig(
                provider=get_env("MINDSCRIBE_LLM_PROVIDER", "ollama"),
                model=get_env("MINDSCRIBE_LLM_MODEL", "gemma3:4b"),
                base_url=get_env("MINDSCRIBE_LLM_BASE_URL", "http://localhost:11434"),
                temperature=get_env("MINDSCRIBE_LLM_TEMPERATURE", 0.7),
                top_p=get_env("MINDSCRIBE_LLM_TOP_P", 0.9),
                max_tokens=get_env("MINDSCRIBE_LLM_MAX_TOKENS", 512),
                timeout=get_env("MINDSCRIBE_LLM_TIMEOUT", 120.0),
            ),
            logging=LoggingConfig(
                level=get_env("MINDSCRIBE_LOG_LEVEL", "INFO"),
                log_to_file=get_env("MINDSCRIBE_LOG_TO_FILE", True),
                log_dir=get_env("MINDSCRIBE_LOG_DIR", "logs"),
                file_rotation=get_env("MINDSCRIBE_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("MINDSCRIBE_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("MINDSCRIBE_LOG_COMPRESSION", "zip"),
                serialize=get_env("MINDSCRIBE_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        # Sections whose env values differ from defaults override YAML
        final_dict = {**config_dict}
        default = cls()
        for section in ("autosave", "chat", "llm", "logging"):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
