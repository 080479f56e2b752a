"""Configuration management using Pydantic."""

import json
from pathlib import Path
from typing import Optional, Dict, Any, Literal, Tuple, Type

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

DEFAULT_CONFIG_PATH = Path.home() / ".dailyctl.yaml"


class GitHubConfig(BaseModel):
    """Repository that holds the day log files."""
    repo: str = ""  # "owner/repo"
    token: str = ""
    branch: Optional[str] = None  # default branch when unset
    api_url: str = "https://api.github.com"
    timeout: float = 30.0


class StorageConfig(BaseModel):
    """Configuration for storage."""
    backend: Literal["github", "local", "memory"] = "github"
    base_path: str = "logs"
    local_path: Path = Path("daily-logs")
    max_write_attempts: int = Field(default=3, ge=1)
    search_window_months: int = Field(default=3, ge=1)


class FeatureConfig(BaseModel):
    """Read-only feature flags."""
    backup_enabled: bool = False
    backup_frequency: Literal["daily", "weekly"] = "daily"
    backup_path: str = "backups"
    ai_enabled: bool = False
    ai_provider: str = "template"


class Config(BaseSettings):
    """Main configuration class.

    Priority: environment variables (``DAILYLOG_`` prefix, ``__`` between
    nested keys) > config file values > defaults.
    """

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    features: FeatureConfig = Field(default_factory=FeatureConfig)

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    # Output
    output_format: Literal["table", "json", "yaml"] = "table"

    model_config = SettingsConfigDict(
        env_prefix="DAILYLOG_",
        env_nested_delimiter="__",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; the environment wins over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load from `config_path`, else ~/.dailyctl.yaml if present, else env only."""
        if config_path is not None:
            return cls.load_from_file(config_path)
        if DEFAULT_CONFIG_PATH.exists():
            return cls.load_from_file(DEFAULT_CONFIG_PATH)
        return cls()

    @classmethod
    def load_from_file(cls, config_path: Path) -> "Config":
        """Load configuration from a file."""
        config_path = Path(config_path)
        if config_path.suffix.lower() == '.json':
            with open(config_path) as f:
                data = json.load(f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported config file format: {config_path.suffix}")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to a file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json")
        if config_path.suffix.lower() == '.json':
            with open(config_path, 'w') as f:
                json.dump(data, f, indent=2)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    def redacted(self) -> Dict[str, Any]:
        """Configuration as a dict with the access token masked."""
        data = self.model_dump(mode="json")
        if data["github"]["token"]:
            data["github"]["token"] = "***"
        return data
