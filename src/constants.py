"""Constants used in the project."""

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    CONFIG_ERROR = 4
    NOT_FOUND = 5
    INTERNAL_ERROR = 70


class DistTypes(Enum):
    """Distribution archive formats the extractor understands.

    Args:
        Enum (string): Composer "dist.type" values.
    """

    ZIP = "zip"
    TAR = "tar"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REPOSITORY_URL_PACKAGIST = "https://repo.packagist.org"
    DEFAULT_REPOSITORIES = [REPOSITORY_URL_PACKAGIST]
    COMPOSER_FILE = "composer.json"
    COMPOSER_ENV = "COMPOSER"
    INSTALLED_FILE = os.path.join("vendor", "composer", "installed.json")
    PLUGIN_EXTRA_KEY = "self-update-plugin"
    DEFAULT_PACKAGE_VERSION = "dev-main"
    DEFAULT_MINIMUM_STABILITY = "stable"
    ROOT_PACKAGE_NAME = "__root__"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "SELFUPDATE_LOG_LEVEL"
    CONFIG_ENV = "SELFUPDATE_CONFIG"
    CONFIG_FILE_NAMES = ["selfupdate.yml", "selfupdate.yaml"]
    USER_AGENT = "selfupdate/1.0"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _config_search_paths(explicit=None):
    """Return candidate YAML config paths in precedence order."""
    paths = []
    if explicit:
        paths.append(explicit)
    env_path = os.environ.get(Constants.CONFIG_ENV)
    if env_path:
        paths.append(env_path)
    for name in Constants.CONFIG_FILE_NAMES:
        paths.append(os.path.join(os.getcwd(), name))
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    for name in Constants.CONFIG_FILE_NAMES:
        paths.append(os.path.join(xdg, "selfupdate", name))
    return paths


def _load_yaml_config(explicit=None):
    """Load the first YAML config file found; return {} when there is none.

    An explicit path that does not exist is reported by the caller, here it is
    simply skipped like any other candidate.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    for path in _config_search_paths(explicit):
        if not os.path.isfile(path):
            continue
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        logger.debug("Loaded configuration from %s", path)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        return data
    return {}
