"""Configuration management for surveyor.

Two layers:
1. ``Settings`` - process-level knobs read from the environment (and ``.env``).
2. ``SurveyConfig`` - the projects file, TOML by default, YAML by extension.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .normalizer import PROCESSORS
from .notifier import DEFAULT_TIMEOUT, NotificationPolicy
from .project import Project

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = ".config"
DEFAULT_CONFIG_FILE_NAME = ".surveyor.toml"
YAML_SUFFIXES = (".yaml", ".yml")


class ConfigError(Exception):
    """Base exception for configuration problems. Always fatal."""

    pass


class ConfigNotFoundError(ConfigError):
    """No configuration file could be located."""

    pass


class ConfigReadError(ConfigError):
    """The configuration file exists but could not be read as text."""

    pass


class ConfigParseError(ConfigError):
    """The configuration file is malformed."""

    pass


@dataclass
class Settings:
    """Process-level settings taken from the environment."""

    config_path: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables (after reading ``.env``).

        Returns:
            Settings instance populated from environment.
        """
        load_dotenv()

        config_path = os.getenv("SURVEYOR_CONFIG")
        return cls(
            config_path=Path(config_path).expanduser() if config_path else None,
            log_level=os.getenv("SURVEYOR_LOG_LEVEL", "INFO").upper(),
        )


@dataclass
class SurveyOptions:
    """Run-wide options from the ``[options]`` table of the config file."""

    notification_policy: NotificationPolicy = NotificationPolicy.IGNORE
    output_processor: str = "strip-refresh"
    terraform_binary: str = "terraform"
    notify_timeout: int = DEFAULT_TIMEOUT

    @classmethod
    def from_dict(cls, data: dict) -> SurveyOptions:
        """Create SurveyOptions from dictionary.

        Raises:
            ConfigParseError: If a value is of the wrong kind or unknown.
        """
        policy = data.get("notification_policy", NotificationPolicy.IGNORE.value)
        try:
            notification_policy = NotificationPolicy(policy)
        except ValueError as exc:
            choices = ", ".join(p.value for p in NotificationPolicy)
            raise ConfigParseError(
                f"Invalid notification_policy '{policy}'. Use one of: {choices}"
            ) from exc

        output_processor = data.get("output_processor", "strip-refresh")
        if output_processor not in PROCESSORS:
            raise ConfigParseError(
                f"Invalid output_processor '{output_processor}'. "
                f"Use one of: {', '.join(sorted(PROCESSORS))}"
            )

        try:
            notify_timeout = int(data.get("notify_timeout", DEFAULT_TIMEOUT))
        except (TypeError, ValueError) as exc:
            raise ConfigParseError("notify_timeout must be an integer") from exc

        return cls(
            notification_policy=notification_policy,
            output_processor=output_processor,
            terraform_binary=str(data.get("terraform_binary", "terraform")),
            notify_timeout=notify_timeout,
        )


@dataclass
class SurveyConfig:
    """Projects to survey, in file order, plus run-wide options."""

    projects: list[Project] = field(default_factory=list)
    options: SurveyOptions = field(default_factory=SurveyOptions)

    @classmethod
    def from_dict(cls, data: Any) -> SurveyConfig:
        """Create SurveyConfig from a parsed document.

        Raises:
            ConfigParseError: If the document does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ConfigParseError("Configuration must be a table at the top level")

        raw_projects = data.get("projects", [])
        if not isinstance(raw_projects, list):
            raise ConfigParseError("'projects' must be a list of project tables")

        raw_options = data.get("options", {})
        if not isinstance(raw_options, dict):
            raise ConfigParseError("'options' must be a table")

        projects = []
        for index, entry in enumerate(raw_projects):
            try:
                projects.append(Project.from_dict(entry, index))
            except ValueError as exc:
                raise ConfigParseError(str(exc)) from exc

        return cls(projects=projects, options=SurveyOptions.from_dict(raw_options))


def default_config_path() -> Optional[Path]:
    """Return ``$HOME/.config/.surveyor.toml``, or None without a home directory."""
    try:
        home = Path.home()
    except RuntimeError:
        return None
    return home / DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE_NAME


def determine_config_path(explicit_path: Optional[Path], settings: Optional[Settings] = None) -> Path:
    """Resolve which configuration file to load.

    Args:
        explicit_path: Path given on the command line, if any.
        settings: Environment settings; ``SURVEYOR_CONFIG`` applies when no
            explicit path was given.

    Returns:
        The path to load.

    Raises:
        ConfigNotFoundError: If no path can be determined.
    """
    if explicit_path:
        return Path(explicit_path).expanduser()

    if settings and settings.config_path:
        return settings.config_path

    default_path = default_config_path()
    if default_path is None:
        raise ConfigNotFoundError("No config file specified and no home directory to look in.")
    return default_path


def parse_config(contents: str, fmt: str = "toml") -> SurveyConfig:
    """Parse configuration text.

    Args:
        contents: Full text of the configuration file.
        fmt: ``"toml"`` or ``"yaml"``.

    Raises:
        ConfigParseError: If the text is not a valid document.
    """
    try:
        if fmt == "yaml":
            data = yaml.safe_load(contents) or {}
        else:
            data = tomllib.loads(contents)
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigParseError(f"Malformed {fmt.upper()} configuration: {exc}") from exc

    return SurveyConfig.from_dict(data)


def load_config(path: Path) -> SurveyConfig:
    """Load the whole configuration file or fail.

    Args:
        path: Configuration file path.

    Returns:
        The parsed configuration.

    Raises:
        ConfigNotFoundError: If the file does not exist.
        ConfigReadError: If the file cannot be read as UTF-8 text.
        ConfigParseError: If the contents are malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")

    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigReadError(f"Could not read config file {path}: {exc}") from exc

    fmt = "yaml" if path.suffix.lower() in YAML_SUFFIXES else "toml"
    try:
        config = parse_config(contents, fmt)
    except ConfigParseError as exc:
        raise ConfigParseError(f"{path}: {exc}") from exc

    logger.debug(f"Loaded {len(config.projects)} project(s) from {path}")
    return config
