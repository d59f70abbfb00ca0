from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, cast

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


# --- File Loading Logic ---
def _yaml_config_settings_source() -> dict[str, Any]:
    """
    A Pydantic settings source that loads values from a YAML file.
    It searches up to 5 parent directories for 'cfg/cfg.yml'.
    """
    config_path = _locate_config_file("cfg/cfg.yml", max_depth=5)
    if not config_path:
        # Settings will rely purely on env vars or defaults.
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
            return config or {}
    except yaml.YAMLError as e:
        print(f"ERROR: Could not parse config YAML: {e}")
        return {}
    except OSError as e:
        print(f"ERROR: Could not read config file {config_path}: {e}")
        return {}


def _locate_config_file(cfg_file: str, max_depth: int = 5) -> Optional[str]:
    """
    Searches parent directories for a configuration file.
    Starts from the current working directory.
    """
    current_dir = Path.cwd()
    for _ in range(max_depth):
        config_path = current_dir / cfg_file
        if config_path.is_file():
            return str(config_path)

        if current_dir.parent == current_dir:
            # Reached root, stop searching
            break
        current_dir = current_dir.parent

    return None


# --- Pydantic Schemas (Data Validation) ---
class MailHookSettings(BaseModel):
    """Schema for the email alerting hook."""

    ENABLED: bool = False
    APP_NAME: str = "app"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    # Validated when the hook is built, not here
    FROM_ADDRESS: str = "noreply@example.com"
    TO_ADDRESS: str = "alerts@example.com"
    # Set USERNAME to switch to the authenticated hook
    USERNAME: Optional[str] = None
    PASSWORD: Optional[str] = Field(None, repr=False)
    PROBE_TIMEOUT: float = Field(3.0, gt=0)
    MAX_DEPTH: int = Field(100, ge=0)


# --- Main Settings Class ---
class AppSettings(BaseSettings):
    """
    The main settings class for the application.

    It validates and loads settings from:
    1. Environment variables (highest priority, for secrets)
    2. 'cfg/cfg.yml' file (for defaults)
    3. Pydantic model defaults (lowest priority)
    """

    # Environment name (e.g., 'Development', 'Staging', 'Production')
    ENVIRONMENT: str = "Development"

    MAIL_HOOK: MailHookSettings = MailHookSettings()

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",  # Allows MAIL_HOOK__SMTP_HOST env var
        case_sensitive=False,
        extra="ignore",  # Ignore extra keys in cfg.yml
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Customizes the load order.
        We want:
        1. Env vars (env_settings)
        2. YAML file (_yaml_config_settings_source)
        3. Pydantic defaults (init_settings)
        """
        return (
            env_settings,
            cast(PydanticBaseSettingsSource, _yaml_config_settings_source),
            init_settings,
        )


# --- Global Settings Singleton ---
@lru_cache
def get_settings() -> AppSettings:
    """
    Returns a cached instance of the AppSettings.

    Raises:
        ValidationError: If any settings are invalid.
    """
    try:
        return AppSettings()
    except ValidationError as e:
        print("--- CRITICAL: CONFIGURATION ERROR ---")
        print(f"Failed to load or validate settings: {e}")
        print("Please check your environment variables and/or cfg/cfg.yml file.")
        raise


# Singleton instance to be imported by other modules
settings: AppSettings = get_settings()
