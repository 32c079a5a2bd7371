"""Loading of the per-repository settings file used by the command-line front end.

The pool itself never touches this file; the CLI reads it and passes a
RepositoryConfig into every call.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

import platformdirs

from git_worktree_pool.config import RepositoryConfig
from git_worktree_pool.constants import APP_NAME
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


def get_data_dir() -> Path:
    """Platform-specific directory holding app-data.json."""
    return Path(platformdirs.user_config_dir(APP_NAME, appauthor=False))


def get_data_file() -> Path:
    return get_data_dir() / "app-data.json"


def load_app_data(data_file: Optional[Path] = None) -> Dict:
    """Read app-data.json; a missing or unreadable file yields empty data."""
    data_file = data_file or get_data_file()
    defaults: Dict = {"repositories": [], "repositoryConfigs": {}}
    try:
        with open(data_file, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug(f"No app data at {data_file}, using defaults")
        return defaults
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read {data_file}: {e}")
        return defaults

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {data_file}: expected a JSON object")
        return defaults
    return {**defaults, **data}


def managed_repositories(app_data: Dict) -> List[str]:
    """Paths of the repositories registered in the app data."""
    paths = []
    for repo in app_data.get("repositories") or []:
        if isinstance(repo, dict) and repo.get("path"):
            paths.append(repo["path"])
    return paths


def get_repo_config(app_data: Dict, repo_path: str) -> RepositoryConfig:
    """Configuration stored for repo_path, or defaults."""
    configs = app_data.get("repositoryConfigs") or {}
    raw = configs.get(repo_path)
    if raw is None:
        return RepositoryConfig()
    try:
        return RepositoryConfig.from_dict(raw)
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning(f"Invalid configuration for {repo_path}, using defaults: {e}")
        return RepositoryConfig()
