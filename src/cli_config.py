"""Runtime settings assembled from CLI flags, environment, YAML config and defaults.

Precedence, highest first: CLI flags, environment variables, the config
file, built-in defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import Constants, RepositoryTypes, _load_yaml_config
from packages.models import InstallDefaults
from repository.base import Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one run."""

    repository_type: str = RepositoryTypes.LOCAL.value
    repository_path: str = Constants.DEFAULT_REPOSITORY_PATH
    repository_url: Optional[str] = None
    repository_token: Optional[str] = None
    user_id: Any = Constants.DEFAULT_USER_ID
    install: InstallDefaults = field(default_factory=InstallDefaults)
    log_level: Optional[str] = None
    log_file: Optional[str] = Constants.DEFAULT_LOG_FILE
    verbose: bool = False


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name)
    return value if isinstance(value, dict) else {}


def _install_defaults(section: Dict[str, Any]) -> InstallDefaults:
    base = InstallDefaults()
    return InstallDefaults(
        site_access_map=dict(section.get("site_access_map", base.site_access_map)),
        top_nodes_map=dict(section.get("top_nodes_map", base.top_nodes_map)),
        design_map=dict(section.get("design_map", base.design_map)),
        restore_dates=bool(section.get("restore_dates", base.restore_dates)),
        non_interactive=bool(section.get("non_interactive", base.non_interactive)),
    )


def _coerce_user_id(value: Any) -> Any:
    """Numeric ids become ints; anything else is passed through."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


def load_settings(args) -> Settings:
    """Build Settings from parsed CLI args.

    Raises:
        FileNotFoundError: If an explicit --config path does not exist.
        ValueError: If the config file is not a mapping.
    """
    cfg = _load_yaml_config(getattr(args, "CONFIG", None))
    repo_cfg = _section(cfg, "repository")
    install_cfg = _section(cfg, "install")
    log_cfg = _section(cfg, "logging")

    def pick(cli_value, env_name, cfg_value, default):
        if cli_value is not None:
            return cli_value
        if env_name:
            env_value = os.environ.get(env_name)
            if env_value:
                return env_value
        if cfg_value is not None:
            return cfg_value
        return default

    log_file = pick(getattr(args, "LOG_FILE", None), None, log_cfg.get("file"), Constants.DEFAULT_LOG_FILE)
    if getattr(args, "NO_LOG_FILE", False):
        log_file = None

    return Settings(
        repository_type=pick(getattr(args, "REPOSITORY", None), None, repo_cfg.get("type"), RepositoryTypes.LOCAL.value),
        repository_path=pick(
            getattr(args, "REPOSITORY_PATH", None), None, repo_cfg.get("path"), Constants.DEFAULT_REPOSITORY_PATH
        ),
        repository_url=pick(getattr(args, "REPOSITORY_URL", None), Constants.ENV_REPOSITORY_URL, repo_cfg.get("url"), None),
        repository_token=pick(None, Constants.ENV_REPOSITORY_TOKEN, repo_cfg.get("token"), None),
        user_id=_coerce_user_id(
            pick(getattr(args, "USER_ID", None), Constants.ENV_USER_ID, install_cfg.get("user_id"), Constants.DEFAULT_USER_ID)
        ),
        install=_install_defaults(install_cfg),
        log_level=pick(getattr(args, "LOG_LEVEL", None), Constants.ENV_LOG_LEVEL, log_cfg.get("level"), None),
        log_file=log_file,
        verbose=bool(getattr(args, "VERBOSE", False)),
    )


def create_repository(settings: Settings) -> Repository:
    """Instantiate the repository adapter the settings select."""
    # pylint: disable=import-outside-toplevel
    if settings.repository_type == RepositoryTypes.REMOTE.value:
        from repository.remote import RemoteRepository

        logger.debug("Using remote repository at %s", settings.repository_url)
        return RemoteRepository(settings.repository_url, token=settings.repository_token).as_repository()
    if settings.repository_type == RepositoryTypes.LOCAL.value:
        from repository.local import LocalRepository

        logger.debug("Using local repository at %s", settings.repository_path)
        return LocalRepository(settings.repository_path).as_repository()
    raise ValueError(f"Unsupported repository type: {settings.repository_type}")
