"""Drives the plan pipeline over the configured projects."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .config import SurveyConfig
from .pipeline import PipelineResult, PlanPipeline
from .project import Project

logger = logging.getLogger(__name__)

NO_PROJECTS_MESSAGE = "No valid projects found"


@dataclass
class RunSummary:
    """Results of one surveyor run, in the order projects were processed."""

    results: list[PipelineResult] = field(default_factory=list)
    project_filter: Optional[str] = None

    @property
    def failed(self) -> list[PipelineResult]:
        return [r for r in self.results if not r.success]

    @property
    def success(self) -> bool:
        """True when every selected project succeeded and a filter, if any, matched."""
        if self.project_filter is not None and not self.results:
            return False
        return not self.failed


def select_projects(projects: list[Project], name: Optional[str] = None) -> list[Project]:
    """Return all projects, or only those whose name equals ``name``."""
    if name is None:
        return list(projects)
    return [p for p in projects if p.name == name]


class SurveyRunner:
    """Runs the pipeline for each selected project, one at a time."""

    def __init__(self, pipeline: PlanPipeline, console: Optional[Console] = None):
        self.pipeline = pipeline
        self.console = console or Console()

    def run(
        self,
        config: SurveyConfig,
        project_filter: Optional[str] = None,
        background: bool = False,
    ) -> RunSummary:
        """Survey the selected projects.

        Args:
            config: Loaded configuration.
            project_filter: Exact project name to restrict the run to.
            background: Run the loop on a worker thread and wait for it.

        Returns:
            RunSummary with one result per processed project.

        Raises:
            Exception: Whatever escaped the pipeline, from either thread.
        """
        summary = RunSummary(project_filter=project_filter)
        projects = select_projects(config.projects, project_filter)

        if not projects:
            self.console.print(f"[yellow]{NO_PROJECTS_MESSAGE}[/yellow]")
            return summary

        if background:
            errors: list[BaseException] = []

            def work() -> None:
                try:
                    self._survey_all(projects, summary)
                except Exception as exc:
                    errors.append(exc)

            worker = threading.Thread(target=work, name="surveyor-worker")
            worker.start()
            worker.join()
            # worker exceptions are re-raised in the caller
            if errors:
                raise errors[0]
        else:
            self._survey_all(projects, summary)

        return summary

    def _survey_all(self, projects: list[Project], summary: RunSummary) -> None:
        for project in projects:
            logger.debug(f"Surveying {project!r}")
            result = self.pipeline.run(project)
            summary.results.append(result)

            color = "green" if result.success else "red"
            self.console.print(
                f"\nPlan survey complete for {escape(project.name)} [{color}]({result.status})[/{color}]\n"
            )
