from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from platformdirs import PlatformDirs

# ---------------------------------------------------------------------
# App identifiers
# ---------------------------------------------------------------------

# Slug used for platformdirs and temp names (no spaces!)
APP_SLUG = "store-mirror"

# Display name (API title, audit, logs)
APP_DISPLAY_NAME = "Store Mirror"


# ---------------------------------------------------------------------
# Dataclass
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class AppPaths:
    """
    OS-agnostic paths used by the app.

    Environment overrides (optional):
    - MIRROR_DATA_DIR
    - MIRROR_STORE_ROOT
    """

    data_dir: Path    # mutable app data (audit log)
    store_root: Path  # root of the filesystem-backed object store


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def get_paths(env: Mapping[str, str] | None = None) -> AppPaths:
    """
    Compute all filesystem paths used by the app.
    """
    env = os.environ if env is None else env
    data_env = env.get("MIRROR_DATA_DIR")
    store_env = env.get("MIRROR_STORE_ROOT")

    # Platform-specific user data directory
    dirs = PlatformDirs(appname=APP_SLUG, appauthor=False)

    data_dir = (
        Path(data_env).expanduser().resolve()
        if data_env
        else Path(dirs.user_data_dir).resolve()
    )

    store_root = (
        Path(store_env).expanduser().resolve()
        if store_env
        else (data_dir / "store").resolve()
    )

    return AppPaths(data_dir=data_dir, store_root=store_root)


def ensure_dirs(paths: AppPaths) -> None:
    """
    Ensure mutable directories exist.
    """
    paths.data_dir.mkdir(parents=True, exist_ok=True)
    paths.store_root.mkdir(parents=True, exist_ok=True)
