"""Platform specific locations for the configuration file and data files.

This is the only module that looks at the host platform. The rest of the
library works on the path it is handed.
"""

from __future__ import annotations

import logging
import os
import stat
import sys
from pathlib import Path
from typing import Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

DIR_NAME = "sidplayfp"
FILE_NAME = "sidplayfp.ini"
SONGLENGTHS_NAME = "Songlengths.txt"

ENV_CONFIG = "SIDPLAYFP_CONFIG"

_READABLE_BY_ALL = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH


def _is_windows() -> bool:
    return os.name == "nt"


def _user_dir(xdg_var: str, fallback: str) -> Path:
    if _is_windows():
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata)
        profile = os.environ.get("USERPROFILE")
        if not profile:
            raise ConfigError("Cannot get config path!")
        return Path(profile) / "Application Data"

    value = os.environ.get(xdg_var)
    if value:
        return Path(value)
    home = os.environ.get("HOME")
    if not home:
        raise ConfigError("Cannot get config path!")
    return Path(home) / fallback


def config_dir() -> Path:
    """Base directory for configuration files ($XDG_CONFIG_HOME or ~/.config)."""
    return _user_dir("XDG_CONFIG_HOME", ".config")


def data_dir() -> Path:
    """Base directory for data files ($XDG_DATA_HOME or ~/.local/share)."""
    return _user_dir("XDG_DATA_HOME", ".local/share")


def _exec_dir() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(sys.argv[0]).resolve().parent


def ensure_directory(path: Path) -> None:
    """Create ``path`` (and missing parents) if it does not exist yet."""
    try:
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
    except FileExistsError as e:
        raise ConfigError(f"{path} exists but is not a directory") from e
    except OSError as e:
        raise ConfigError(f"Cannot create {path}: {e.strerror or e}") from e


def resolve_config_path(create_dirs: bool = True) -> Path:
    """Return the configuration file to use.

    Order: ``$SIDPLAYFP_CONFIG``, then on Windows a ``sidplayfp.ini`` next to
    the executable, then ``<config dir>/sidplayfp/sidplayfp.ini``. With
    ``create_dirs`` the directories of the last candidate are created.
    """
    # Highest priority: explicit override
    override = os.environ.get(ENV_CONFIG)
    if override:
        return Path(override).expanduser()

    if _is_windows():
        beside = _exec_dir() / FILE_NAME
        if beside.is_file():
            return beside

    base = config_dir()
    logger.debug("Config path: %s", base)
    app_dir = base / DIR_NAME
    if create_dirs:
        ensure_directory(app_dir)

    path = app_dir / FILE_NAME
    logger.debug("Config file: %s", path)
    return path


def default_songlength_path() -> Optional[Path]:
    """The song length database in the data directory, if readable by everyone."""
    try:
        path = data_dir() / DIR_NAME / SONGLENGTHS_NAME
        st = path.stat()
    except (ConfigError, OSError):
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    if st.st_mode & _READABLE_BY_ALL != _READABLE_BY_ALL:
        return None
    return path
