"""Post-processing of terraform plan output before it is posted.

Terraform prints a "Refreshing state..." preamble fenced by horizontal rules
ahead of the plan body. The default processor cuts the plan body out from
between those rules. This depends on terraform's output format: if the rule
length or layout changes, processing fails with NormalizationError instead of
posting the wrong section.
"""

from __future__ import annotations

from typing import Protocol

# Horizontal rule terraform prints around the refresh section.
PLAN_DELIMITER = "-" * 72


class NormalizationError(Exception):
    """Exception raised when plan output cannot be post-processed."""

    pass


class OutputProcessor(Protocol):
    """Transforms raw plan output into the text that gets posted."""

    name: str

    def process(self, text: str) -> str:
        ...


class RefreshMessageStripper:
    """Keep only the section between the last two horizontal rules."""

    name = "strip-refresh"

    def __init__(self, delimiter: str = PLAN_DELIMITER):
        self.delimiter = delimiter

    def process(self, text: str) -> str:
        """Return the second-to-last delimiter-separated segment of ``text``.

        Raises:
            NormalizationError: If the delimiter appears fewer than two times.
        """
        segments = text.split(self.delimiter)
        found = len(segments) - 1
        if found < 2:
            raise NormalizationError(
                f"Expected at least 2 plan delimiters in terraform output, found {found}"
            )
        return segments[-2]


class PassthroughProcessor:
    """Post the plan output as-is."""

    name = "passthrough"

    def process(self, text: str) -> str:
        return text


PROCESSORS: dict[str, type] = {
    RefreshMessageStripper.name: RefreshMessageStripper,
    PassthroughProcessor.name: PassthroughProcessor,
}


def get_processor(name: str) -> OutputProcessor:
    """Instantiate the processor registered under ``name``.

    Raises:
        KeyError: If no processor has that name.
    """
    try:
        processor_cls = PROCESSORS[name]
    except KeyError:
        raise KeyError(
            f"Unknown output processor '{name}'. Available: {', '.join(sorted(PROCESSORS))}"
        ) from None
    return processor_cls()
