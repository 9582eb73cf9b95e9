import collections.abc
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from config.loader import load_config
from config.models import Config, EnvSettings
from utils.errors import ConfigError
from utils.logger import logger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
USER_CONFIG_DIR = Path.home() / ".gemini-tools"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_FILENAME = ".gemini-tools.yaml"


def deep_merge(target: Dict[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Recursively merges two dictionaries.
    Arrays are replaced, not merged.
    """
    for key, value in source.items():
        if isinstance(value, collections.abc.Mapping) and key in target and isinstance(target[key], collections.abc.Mapping):
            target[key] = deep_merge(dict(target[key]), value)
        else:
            target[key] = value
    return target


def find_project_root(start_dir: Path = Path(".")) -> Optional[Path]:
    """
    Finds the project root by searching upwards for a .git entry or a
    project configuration file.
    """
    d = start_dir.resolve()
    while True:
        if (d / ".git").exists() or (d / PROJECT_CONFIG_FILENAME).is_file():
            return d
        if d == d.parent:
            return None
        d = d.parent


def find_project_config() -> Optional[Path]:
    """
    Finds the project-specific configuration file (.gemini-tools.yaml) in the project root.
    """
    project_root = find_project_root()
    if project_root:
        project_config_path = project_root / PROJECT_CONFIG_FILENAME
        if project_config_path.is_file():
            return project_config_path
    return None


def load_and_merge_configs(custom_config_path: Optional[str] = None) -> Config:
    """
    Loads all configurations (default, user, project) and merges them.
    A custom config path can be provided to override all others.

    Raises:
        ConfigError: If a required file is missing or the result fails validation.
    """
    config_paths: List[Path] = []

    # 1. Default config
    if DEFAULT_CONFIG_PATH.is_file():
        config_paths.append(DEFAULT_CONFIG_PATH)
    else:
        raise ConfigError("Default configuration file not found.")

    # 2. User config
    if USER_CONFIG_PATH.is_file():
        config_paths.append(USER_CONFIG_PATH)

    # 3. Project config
    project_config_path = find_project_config()
    if project_config_path:
        config_paths.append(project_config_path)

    # A custom config path replaces the whole chain.
    if custom_config_path:
        path = Path(custom_config_path)
        if not path.is_file():
            raise ConfigError(f"Custom config file not found at: {custom_config_path}")
        config_paths = [path]
        logger.info(f"Using custom configuration from: {custom_config_path}")

    merged_config: Dict[str, Any] = {}
    for path in config_paths:
        logger.debug(f"Loading configuration from: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                merged_config = deep_merge(merged_config, load_config(f))
        except (OSError, ConfigError) as e:
            if path == DEFAULT_CONFIG_PATH or custom_config_path:
                raise ConfigError(f"Could not load config at {path}: {e}") from e
            logger.warning(f"Could not load or parse config at {path}: {e}")

    try:
        final_config = Config(**merged_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
    logger.debug(f"Final merged config: {final_config.model_dump_json(indent=2, exclude={'gemini': {'api_key'}})}")
    return final_config


def _read_environ(environ: Optional[Mapping[str, str]], dotenv_path: Optional[str]) -> Mapping[str, str]:
    if environ is not None:
        return environ
    load_dotenv(dotenv_path=dotenv_path or Path.cwd() / ".env", override=False)
    return os.environ


def load_environment(environ: Optional[Mapping[str, str]] = None, dotenv_path: Optional[str] = None) -> EnvSettings:
    """
    Loads `.env` (without overriding real variables) and validates the environment.

    Raises:
        ConfigError: If GEMINI_API_KEY is missing or invalid.
    """
    environ = _read_environ(environ, dotenv_path)

    try:
        return EnvSettings(
            GEMINI_API_KEY=environ.get("GEMINI_API_KEY", ""),
            GEMINI_MODEL=environ.get("GEMINI_MODEL") or None,
        )
    except ValidationError as e:
        raise ConfigError(f"Environment validation failed: {e}") from e


def apply_environment(config: Config, env: EnvSettings) -> Config:
    """Copies the API key and any model override from the environment into the config."""
    config.gemini.api_key = env.GEMINI_API_KEY
    if env.GEMINI_MODEL:
        config.gemini.model = env.GEMINI_MODEL
        logger.info(f"Using model from GEMINI_MODEL: {env.GEMINI_MODEL}")
    return config


def apply_model_override(config: Config, environ: Optional[Mapping[str, str]] = None,
                         dotenv_path: Optional[str] = None) -> Config:
    """
    Applies GEMINI_MODEL to the config without requiring an API key.
    Used when the external tool is not called, e.g. for dry runs.
    """
    model = (_read_environ(environ, dotenv_path).get("GEMINI_MODEL") or "").strip()
    if model:
        config.gemini.model = model
        logger.info(f"Using model from GEMINI_MODEL: {model}")
    return config
