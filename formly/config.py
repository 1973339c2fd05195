import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

CONFIG_FILE_NAMES = ("formly.yaml", "app.yaml")

RECOGNIZED_OPTIONS = (
    "form_class",
    "autocomplete",
    "name_as_id",
    "id_prefix",
    "required_label",
    "required_prefix",
    "required_suffix",
    "required_class",
    "control_group_error",
    "display_inline_errors",
    "comment_class",
    "layout",
)


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case. nameAsId -> name_as_id"""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase. name_as_id -> nameAsId"""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def find_config_file(directory: Path | None = None) -> Path | None:
    """Return the first formly.yaml/app.yaml in *directory* (default: cwd)."""
    directory = directory or Path.cwd()
    for file_name in CONFIG_FILE_NAMES:
        candidate = directory / file_name
        if candidate.exists():
            return candidate
    return None


def load_formly_config(config_path: Path) -> dict:
    """Load form options from a YAML file with environment variable interpolation.

    A file named app.yaml contributes only its ``formly:`` section; any other
    file is read as a flat mapping of options.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    if config_path.name == "app.yaml":
        config = config.get("formly") or {}

    return interpolate_env_vars(config)


class FormlySettings(BaseSettings):
    """Configured defaults for every FormBuilder option.

    Values come from keyword arguments, FORMLY_* environment variables, .env,
    and finally the defaults below. Both snake_case and camelCase names are
    accepted: ``FormlySettings(nameAsId=False)`` works like ``name_as_id=False``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMLY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    form_class: str = "form-horizontal"
    autocomplete: str = "off"
    name_as_id: bool = True
    id_prefix: str = ""
    required_label: str = ".req"
    required_prefix: str = ""
    required_suffix: str = " *"
    required_class: str = "required"
    control_group_error: str = "has-error"
    display_inline_errors: bool = False
    comment_class: str = "help-block"
    layout: Literal["form-group", "control-group"] = "form-group"

    @model_validator(mode="before")
    @classmethod
    def _accept_camel_case(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {camel_to_snake(k): v for k, v in data.items()}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a single option by snake_case or camelCase name."""
        return getattr(self, camel_to_snake(key), default)

    def as_options(self) -> dict[str, Any]:
        """Every recognized option as a snake_case mapping, ready for FormBuilder."""
        return {name: getattr(self, name) for name in RECOGNIZED_OPTIONS}


@lru_cache
def get_settings() -> FormlySettings:
    """Load settings from the environment, .env and formly.yaml/app.yaml."""
    # Load .env early so env vars are available for YAML interpolation
    load_dotenv(Path.cwd() / ".env")

    config_path = find_config_file()
    if config_path is None:
        logger.debug("No formly config file found in %s, using defaults", Path.cwd())
        return FormlySettings()

    logger.debug("Loading formly options from %s", config_path)
    return FormlySettings(**load_formly_config(config_path))
