"""Shared test fixtures for surveyor tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from surveyor.project import Project

PROJECT_TOML = """
[[projects]]
name = "{name}"
slack_webhook_url = "https://hooks.slack.com/services/T000/B000/XXXX"
git_repo_url = "https://example.com/{name}.git"
tmp_prj_directory = "{checkout}"
aws_api_key = "AKIATEST"
aws_secret = "s3cret"
aws_default_region = "us-east-1"
"""

RULE = "-" * 72

PLAN_OUTPUT = f"""Refreshing Terraform state in-memory prior to plan...

data.aws_iam_policy_document.this: Refreshing state...

{RULE}

An execution plan has been generated and is shown below.

  + aws_s3_bucket.logs

Plan: 1 to add, 0 to change, 0 to destroy.

{RULE}

Note: You didn't specify an "-out" parameter to save this plan.
"""


@pytest.fixture
def project(tmp_path: Path) -> Project:
    """A single project whose checkout lives under tmp_path."""
    return Project(
        name="infra-a",
        git_repo_url="https://example.com/infra-a.git",
        tmp_prj_directory=str(tmp_path / "checkout" / "infra-a"),
        slack_webhook_url="https://hooks.slack.com/services/T000/B000/XXXX",
        aws_api_key="AKIATEST",
        aws_secret="s3cret",
        aws_default_region="us-east-1",
    )


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a TOML config with the given project names and return its path."""

    def _write(*names: str, options: str = "") -> Path:
        body = options
        for name in names:
            body += PROJECT_TOML.format(
                name=name,
                checkout=(tmp_path / "checkout" / name).as_posix(),
            )
        config_path = tmp_path / "surveyor.toml"
        config_path.write_text(body)
        return config_path

    return _write


@pytest.fixture
def plan_output() -> str:
    """Terraform 0.12-style plan output with the refresh preamble."""
    return PLAN_OUTPUT
