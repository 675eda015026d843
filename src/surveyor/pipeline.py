"""Per-project plan pipeline: clone, plan, normalize, notify, cleanup.

Errors from any step are caught here and turned into a PipelineResult so
that one broken project never stops the others from being surveyed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from . import repository
from .normalizer import NormalizationError, OutputProcessor, RefreshMessageStripper
from .notifier import NotificationError, NotificationPolicy, SlackNotifier
from .project import Project
from .repository import CleanupError, CloneError
from .terraform import PlanError, TerraformRunner

logger = logging.getLogger(__name__)


class PipelineStep(str, Enum):
    """Pipeline stages, in execution order."""

    CLONE = "clone"
    PLAN = "plan"
    NORMALIZE = "normalize"
    NOTIFY = "notify"
    CLEANUP = "cleanup"


@dataclass
class PipelineResult:
    """Outcome of surveying one project."""

    project_name: str
    failed_step: Optional[PipelineStep] = None
    error: Optional[str] = None
    notified: bool = False
    cleaned_up: bool = False
    plan_text: Optional[str] = None

    @property
    def success(self) -> bool:
        """True when no step failed."""
        return self.failed_step is None

    @property
    def status(self) -> str:
        """Short human-readable status."""
        if self.success:
            return "ok" if self.notified else "ok (not posted)"
        return f"failed at {self.failed_step.value}"


class PlanPipeline:
    """Runs the clone -> plan -> normalize -> notify -> cleanup sequence."""

    def __init__(
        self,
        runner: Optional[TerraformRunner] = None,
        processor: Optional[OutputProcessor] = None,
        notifier: Optional[SlackNotifier] = None,
        notification_policy: NotificationPolicy = NotificationPolicy.IGNORE,
        dry_run: bool = False,
    ):
        """Initialize the pipeline.

        Args:
            runner: Terraform runner. Defaults to ``terraform`` on PATH.
            processor: Plan output post-processor.
            notifier: Slack notifier.
            notification_policy: Whether a failed delivery fails the project.
            dry_run: Keep the plan on the result instead of posting it.
        """
        self.runner = runner or TerraformRunner()
        self.processor = processor or RefreshMessageStripper()
        self.notifier = notifier or SlackNotifier()
        self.notification_policy = notification_policy
        self.dry_run = dry_run

    def run(self, project: Project) -> PipelineResult:
        """Survey one project. Never raises for per-project failures.

        Args:
            project: The project to survey.

        Returns:
            PipelineResult describing what happened.
        """
        result = PipelineResult(project_name=project.name)
        checkout = Path(project.tmp_prj_directory)

        try:
            repository.clone(project.git_repo_url, checkout)
        except CloneError as exc:
            logger.error(f"[{project.name}] {exc}")
            result.failed_step = PipelineStep.CLONE
            result.error = str(exc)
            return result

        try:
            self._plan_and_notify(project, checkout, result)
        finally:
            self._cleanup(project, checkout, result)

        return result

    def _plan_and_notify(self, project: Project, checkout: Path, result: PipelineResult) -> None:
        try:
            self.runner.init(checkout)
            plan = self.runner.plan(checkout, env=project.plan_environment())
        except PlanError as exc:
            logger.error(f"[{project.name}] {exc}")
            result.failed_step = PipelineStep.PLAN
            result.error = str(exc)
            return

        try:
            text = self.processor.process(plan)
        except NormalizationError as exc:
            logger.error(f"[{project.name}] {exc}")
            result.failed_step = PipelineStep.NORMALIZE
            result.error = str(exc)
            return

        if self.dry_run:
            logger.info(f"[{project.name}] Dry run, not posting plan")
            result.plan_text = text
            return

        try:
            self.notifier.send(project.slack_webhook_url, text)
            result.notified = True
            logger.info(f"[{project.name}] Plan posted to Slack")
        except NotificationError as exc:
            if self.notification_policy is NotificationPolicy.FAIL:
                logger.error(f"[{project.name}] {exc}")
                result.failed_step = PipelineStep.NOTIFY
                result.error = str(exc)
            else:
                logger.warning(f"[{project.name}] {exc} (ignored)")

    def _cleanup(self, project: Project, checkout: Path, result: PipelineResult) -> None:
        try:
            repository.cleanup(checkout)
            result.cleaned_up = True
        except CleanupError as exc:
            if result.success:
                logger.error(f"[{project.name}] {exc}")
                result.failed_step = PipelineStep.CLEANUP
                result.error = str(exc)
            else:
                logger.warning(f"[{project.name}] {exc}")
