"""Constants used in the project."""

import json
import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    OPERATION_FAILED = 3
    INVALID_REFERENCE = 4


class RepositoryTypes(Enum):
    """Repository adapters supported by the program.

    Args:
        Enum (string): Repository adapters supported by the program.
    """

    LOCAL = "local"
    REMOTE = "remote"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    MANIFEST_FILE = "package.xml"
    CLASS_DIR = "ezcontentclass"
    CLASS_FILE_PATTERN = "class-*.xml"
    ARCHIVE_EXTENSION = "ezpkg"
    SUPPORTED_REPOSITORIES = [
        RepositoryTypes.LOCAL.value,
        RepositoryTypes.REMOTE.value,
    ]

    # Installation defaults, overridable from the "install" config section
    DEFAULT_USER_ID = 14
    DEFAULT_SITE_ACCESS_MAP = {"*": False}
    DEFAULT_TOP_NODES_MAP = {"*": 2}
    DEFAULT_DESIGN_MAP = {"*": False}
    DEFAULT_RESTORE_DATES = True
    DEFAULT_NON_INTERACTIVE = True

    # Local repository layout
    DEFAULT_REPOSITORY_PATH = os.path.join("var", "classpkg")
    LOCAL_STATE_FILE = "state.yml"
    LOCAL_PACKAGES_DIR = "packages"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    DEFAULT_LOG_FILE = "classpkg.log"
    ENV_LOG_LEVEL = "CLASSPKG_LOG_LEVEL"
    ENV_USER_ID = "CLASSPKG_USER_ID"
    ENV_REPOSITORY_URL = "CLASSPKG_REPOSITORY_URL"
    ENV_REPOSITORY_TOKEN = "CLASSPKG_REPOSITORY_TOKEN"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3

    CONFIG_FILE_NAMES = ["classpkg.yml", "classpkg.yaml"]


def _default_config_paths():
    """Candidate config locations, in lookup order."""
    paths = [os.path.join(os.getcwd(), name) for name in Constants.CONFIG_FILE_NAMES]
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        paths.append(os.path.join(xdg, "classpkg", Constants.CONFIG_FILE_NAMES[0]))
    paths.append(
        os.path.join(os.path.expanduser("~"), ".config", "classpkg", Constants.CONFIG_FILE_NAMES[0])
    )
    return paths


def _read_config_file(path: str) -> Dict[str, Any]:
    """Read a YAML (or JSON, by extension) config file into a dict."""
    with open(path, "r", encoding="utf-8") as fh:
        if path.lower().endswith(".json"):
            data = json.load(fh)
        else:
            import yaml  # pylint: disable=import-outside-toplevel

            data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at top level")
    return data


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from an explicit path or the default locations.

    An explicit path that does not exist is an error; missing default files
    are not.
    """
    if path:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Config file not found: {path}")
        logger.debug("Loading config from %s", path)
        return _read_config_file(path)

    for candidate in _default_config_paths():
        if os.path.isfile(candidate):
            logger.debug("Loading config from %s", candidate)
            return _read_config_file(candidate)
    return {}
