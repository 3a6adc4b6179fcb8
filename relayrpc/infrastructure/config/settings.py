"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (~/.relayrpc/config.yaml).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".relayrpc"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "RELAYRPC_"

DEFAULT_MAX_TRIES = 5
DEFAULT_LIMITER_DELAY_SECONDS = 0.3
DEFAULT_CONNECTION_TIMEOUT_SECONDS = 90.0
DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_BASE_ADDRESS = "https://api.steampowered.com/"
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_runtime_config: Dict[str, Any] = {}  # Set from CLI flags
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


class ConfigurationError(ValueError):
    """Raised when a configuration value has the wrong type or range."""


def load_configuration(
    config_file: Optional[Path] = None,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables (RELAYRPC_ prefixed)
    2. .env file
    3. YAML configuration file
    4. Default values passed to the accessors

    Args:
        config_file: Path to the YAML configuration file (DEFAULT_CONFIG_FILE if None).
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if the configuration was loaded before.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}
    config_file = config_file or DEFAULT_CONFIG_FILE

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
        else:
            logger.debug(f"No variables loaded from {dotenv_path}.")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    # 3. Environment Variables (Highest priority) are handled in get_config
    _loaded = True
    logger.debug("Configuration loading process completed.")


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def env_key_for(key: str) -> str:
    """Maps a dotted key to its environment variable, e.g. 'web.max_tries' -> 'RELAYRPC_WEB_MAX_TRIES'."""
    return ENV_PREFIX + key.upper().replace('.', '_')


def _coerce_env_value(value: str) -> Any:
    """Converts common scalar types out of environment strings."""
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _lookup_nested(config: Dict[str, Any], key: str) -> Any:
    """Looks up a dotted key in nested YAML dictionaries. Raises KeyError if absent."""
    if key in config:
        return config[key]
    node: Any = config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(key)
        node = node[part]
    return node


def get_config(key: str, default: Any = None, raw: bool = False) -> Any:
    """
    Get a configuration value by dotted key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Values set at runtime with set_config
    3. Environment variable (RELAYRPC_<KEY>)
    4. YAML config
    5. Default value

    Args:
        key: The configuration key, e.g. 'web.max_tries'
        default: Default value if the key is not found
        raw: Return environment values as the exact string, without scalar coercion

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    if key in _runtime_config:
        return _runtime_config[key]

    env_key = env_key_for(key)
    if env_key in os.environ:
        value = os.environ[env_key]
        return value if raw else _coerce_env_value(value)

    try:
        return _lookup_nested(_config, key)
    except KeyError:
        logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
        return default


def _get_bool(key: str, default: bool) -> bool:
    flag = get_config(key, default)
    if isinstance(flag, str):
        if flag.lower() in ('true', '1', 'yes', 'on'):
            return True
        if flag.lower() in ('false', '0', 'no', 'off', ''):
            return False
        logger.warning(f"Unexpected string value for '{key}': '{flag}'. Defaulting to {default}.")
        return default
    if flag is None:
        return default
    return bool(flag)


def _get_number(key: str, default: float, minimum: float) -> float:
    value = get_config(key, default)
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config '{key}' must be a number, got {value!r}.") from e
    if number < minimum:
        raise ConfigurationError(f"Config '{key}' must be >= {minimum}, got {number}.")
    return number


# --- Convenience Functions ---

def get_max_tries() -> int:
    """Number of attempts for each remote call."""
    return int(_get_number('web.max_tries', DEFAULT_MAX_TRIES, minimum=1))


def get_limiter_delay() -> float:
    """Seconds between paced calls to the same host, also used between retries."""
    return _get_number('web.limiter_delay', DEFAULT_LIMITER_DELAY_SECONDS, minimum=0)


def get_connection_timeout() -> float:
    """Per-request timeout in seconds."""
    return _get_number('web.connection_timeout', DEFAULT_CONNECTION_TIMEOUT_SECONDS, minimum=0.001)


def get_max_connections() -> int:
    """Maximum number of simultaneously open calls per host."""
    return int(_get_number('web.max_connections', DEFAULT_MAX_CONNECTIONS, minimum=1))


def get_base_address() -> str:
    """Web API base address, always ending with a slash."""
    address = str(get_config('web.base_address', DEFAULT_BASE_ADDRESS))
    return address if address.endswith('/') else address + '/'


def is_user_debugging() -> bool:
    """Whether verbose per-attempt request tracing is enabled."""
    return _get_bool('debug', False)


def get_access_token() -> Optional[str]:
    """The bearer token, exactly as configured (never coerced to a number or boolean)."""
    token = get_config('session.access_token', raw=True)
    if token is None or token == '':
        return None
    return str(token)


def get_account_id() -> Optional[int]:
    value = get_config('session.account_id')
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Config 'session.account_id' must be an integer, got {value!r}.") from e


def get_logging_settings() -> Dict[str, Any]:
    """Returns level name, format and optional file for setup_logging."""
    return {
        'level': str(get_config('logging.level', 'WARNING')).upper(),
        'format': get_config('logging.format', DEFAULT_LOG_FORMAT),
        'file': get_config('logging.file'),
    }


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value for the rest of the process (e.g. from CLI flags).

    Values set here take precedence over the environment and the YAML file.

    Args:
        key: Configuration key (e.g., 'logging.level')
        value: Value to set
    """
    logger.debug(f"Setting config: {key} = {value!r}")
    _runtime_config[key] = value


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing and runtime configuration values."""
    _test_config.clear()
    _runtime_config.clear()
    logger.debug("Cleared testing configuration")
