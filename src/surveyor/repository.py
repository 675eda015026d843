"""Checkout management for project repositories using GitPython."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

import git
from git.exc import GitCommandError

logger = logging.getLogger(__name__)


class CloneError(Exception):
    """Exception raised when a project repository cannot be cloned."""

    pass


class CleanupError(Exception):
    """Exception raised when a checkout directory cannot be removed."""

    pass


def clone(source: str, target: Path) -> Path:
    """Clone a repository into the checkout directory.

    Args:
        source: Repository URL. Any credentials must be part of the URL.
        target: Directory to clone into.

    Returns:
        Path to the checkout.

    Raises:
        CloneError: If git clone fails.
    """
    target_path = Path(target)
    logger.info(f"Cloning repository into {target_path}")

    try:
        git.Repo.clone_from(source, target_path)
    except GitCommandError as exc:
        stderr = str(exc.stderr or "").strip()
        raise CloneError(
            f"git clone into {target_path} failed with exit code {exc.status}: {stderr}"
        ) from exc
    except OSError as exc:
        raise CloneError(f"git clone into {target_path} failed: {exc}") from exc

    return target_path


def cleanup(target: Path) -> None:
    """Recursively remove a checkout directory.

    Raises:
        CleanupError: If the directory cannot be removed.
    """
    target_path = Path(target)
    logger.debug(f"Removing checkout {target_path}")

    try:
        shutil.rmtree(target_path)
    except OSError as exc:
        raise CleanupError(f"Failed to remove checkout {target_path}: {exc}") from exc
