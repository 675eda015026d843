"""Project records read from the surveyor configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

REQUIRED_KEYS = (
    "name",
    "slack_webhook_url",
    "git_repo_url",
    "tmp_prj_directory",
    "aws_api_key",
    "aws_secret",
    "aws_default_region",
)


@dataclass(frozen=True)
class Project:
    """One infrastructure project to plan and report on.

    Credentials and the webhook URL are excluded from ``repr`` so a project
    can be logged safely.
    """

    name: str
    git_repo_url: str
    tmp_prj_directory: str
    slack_webhook_url: str = field(repr=False)
    aws_api_key: str = field(repr=False)
    aws_secret: str = field(repr=False)
    aws_default_region: str

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> Project:
        """Create a Project from one entry of the ``projects`` list.

        Args:
            data: The parsed table for this project.
            index: Position in the file, used in error messages.

        Returns:
            The project record.

        Raises:
            ValueError: If the entry is not a table or a key is missing.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Project #{index + 1} must be a table, got {type(data).__name__}")

        label = data.get("name") or f"#{index + 1}"
        values = {}
        for key in REQUIRED_KEYS:
            value = data.get(key)
            if value is None:
                raise ValueError(f"Project {label} is missing required key '{key}'")
            if not isinstance(value, str):
                raise ValueError(f"Project {label}: '{key}' must be a string")
            values[key] = value

        return cls(**values)

    def plan_environment(self) -> dict[str, str]:
        """Environment variables handed to ``terraform plan`` for this project."""
        return {
            "AWS_ACCESS_KEY_ID": self.aws_api_key,
            "AWS_SECRET_ACCESS_KEY": self.aws_secret,
            "AWS_DEFAULT_REGION": self.aws_default_region,
        }
