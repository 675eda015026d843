"""Terraform CLI integration.

Runs ``terraform init`` and ``terraform plan`` inside a project checkout. The
project's AWS credentials are passed only through the environment of the
plan process; they are never written to disk or logged.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PlanError(Exception):
    """Exception raised when terraform could not produce a plan."""

    pass


class PlanOutputError(PlanError):
    """Exception raised when plan output is not valid UTF-8 text."""

    pass


def _tail(text: str, lines: int = 20) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


class TerraformRunner:
    """Runs terraform commands in a working directory."""

    def __init__(self, binary: str = "terraform", timeout: Optional[int] = None):
        """Initialize the terraform runner.

        Args:
            binary: Terraform executable name or path.
            timeout: Maximum seconds per command. None waits indefinitely.
        """
        self.binary = binary
        self.timeout = timeout

    def _check_workdir(self, workdir: Path) -> None:
        if not Path(workdir).is_dir():
            raise PlanError(f"Checkout directory does not exist: {workdir}")

    def init(self, workdir: Path) -> int:
        """Run ``terraform init``. The exit status is reported but not enforced.

        Args:
            workdir: Checkout directory.

        Returns:
            The exit code of the init command.

        Raises:
            PlanError: If the checkout is missing, or terraform cannot be started or times out.
        """
        self._check_workdir(workdir)
        logger.info(f"Running {self.binary} init in {workdir}")
        try:
            result = subprocess.run(
                [self.binary, "init", "-input=false", "-no-color"],
                cwd=workdir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise PlanError(f"Terraform executable not found: {self.binary}") from exc
        except OSError as exc:
            raise PlanError(f"Could not start {self.binary} init: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise PlanError(f"{self.binary} init timed out after {self.timeout} seconds") from exc

        if result.returncode != 0:
            logger.warning(f"{self.binary} init exited with code {result.returncode}, continuing")
            logger.debug(f"init stderr:\n{_tail(result.stderr)}")
        return result.returncode

    def plan(self, workdir: Path, env: Optional[dict[str, str]] = None) -> str:
        """Run ``terraform plan -no-color`` and return its stdout.

        Args:
            workdir: Checkout directory.
            env: Extra environment variables for this invocation only.

        Returns:
            The plan text.

        Raises:
            PlanError: If terraform cannot be started, times out or fails.
            PlanOutputError: If stdout is not valid UTF-8.
        """
        process_env = os.environ.copy()
        process_env.update(env or {})

        self._check_workdir(workdir)
        logger.info(f"Running {self.binary} plan in {workdir}")
        try:
            result = subprocess.run(
                [self.binary, "plan", "-no-color"],
                cwd=workdir,
                env=process_env,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise PlanError(f"Terraform executable not found: {self.binary}") from exc
        except OSError as exc:
            raise PlanError(f"Could not start {self.binary} plan: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise PlanError(f"{self.binary} plan timed out after {self.timeout} seconds") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace")
            raise PlanError(
                f"{self.binary} plan exited with code {result.returncode}:\n{_tail(stderr)}"
            )

        try:
            return result.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PlanOutputError(f"{self.binary} plan output is not valid UTF-8: {exc}") from exc
