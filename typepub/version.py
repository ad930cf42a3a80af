"""Version reporting for `typepub --version`."""

from __future__ import annotations

import importlib.metadata
import subprocess
from pathlib import Path
from typing import Optional

DISTRIBUTION = "typepub"


def package_version() -> str:
    """Installed distribution version, or 'unknown' when running from a checkout."""
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _git_commit() -> Optional[str]:
    """Short commit hash when the package lives in a git checkout."""
    here = Path(__file__).resolve().parent
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "--short=7", "HEAD"],
            cwd=str(here), stderr=subprocess.DEVNULL,
        )
    except (subprocess.CalledProcessError, FileNotFoundError, OSError):
        return None
    return out.decode().strip() or None


def get_version_string() -> str:
    version = package_version()
    commit = _git_commit()
    if commit:
        return f"typepub {version} ({commit})"
    return f"typepub {version}"
