import os
import re
from typing import IO, Any, Dict

import yaml

from utils.errors import ConfigError

# Matches ${VAR} and ${VAR:-default}
ENV_VAR_MATCHER = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def substitute_env_vars(value: str) -> str:
    """
    Replaces every ${VAR} or ${VAR:-default} in a string with the value of
    the environment variable.

    Raises:
        ConfigError: If a variable without a default is not set.
    """
    def _replace(match: re.Match) -> str:
        name, default = match.group(1), match.group(2)
        replacement = os.getenv(name)
        if replacement is not None:
            return replacement
        if default is not None:
            return default
        raise ConfigError(f"Environment variable '{name}' not found for substitution in config.")

    return ENV_VAR_MATCHER.sub(_replace, value)


class _EnvLoader(yaml.SafeLoader):
    """SafeLoader with environment variable substitution in scalars."""


def _env_var_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return substitute_env_vars(loader.construct_scalar(node))


_EnvLoader.add_constructor("!env", _env_var_constructor)
_EnvLoader.add_implicit_resolver("!env", ENV_VAR_MATCHER, None)


def load_config(config_file: IO[str]) -> Dict[str, Any]:
    """
    Loads a YAML configuration file.

    Args:
        config_file: A file-like object representing the YAML configuration.

    Returns:
        A dictionary containing the configuration.

    Raises:
        ConfigError: If the file cannot be parsed or is not a mapping.
    """
    try:
        config = yaml.load(config_file, Loader=_EnvLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}") from e

    if not config:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("Configuration file must contain a mapping at the top level.")
    return config
