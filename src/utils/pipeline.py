"""Azure Pipelines logging-command output.

When the tool runs as a pipeline step (`TF_BUILD` is set by the agent), log
records are rendered as logging commands so warnings and errors show up in
the run summary, and the step result is reported with `task.complete`.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

PIPELINE_ENV_VAR = "TF_BUILD"


def running_in_pipeline() -> bool:
    return bool(os.getenv(PIPELINE_ENV_VAR))


def _escape(value: str) -> str:
    # Logging-command data must stay on a single line.
    return value.replace("%", "%AZP25").replace("\r", "%0D").replace("\n", "%0A")


class PipelineFormatter(logging.Formatter):
    """Render records as Azure Pipelines logging commands."""

    def format(self, record: logging.LogRecord) -> str:
        message = _escape(super().format(record))
        if record.levelno >= logging.ERROR:
            return f"##vso[task.logissue type=error]{message}"
        if record.levelno >= logging.WARNING:
            return f"##vso[task.logissue type=warning]{message}"
        if record.levelno <= logging.DEBUG:
            return f"##[debug]{message}"
        return message


def configure_logging(*, verbose: bool = False, pipeline: bool | None = None) -> None:
    """Configure root logging for command-line use."""
    if pipeline is None:
        pipeline = running_in_pipeline()
    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    if pipeline:
        handler.setFormatter(PipelineFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logging.basicConfig(level=level, handlers=[handler], force=True)


def complete_task(result: str, message: str = "", *, stream: TextIO | None = None) -> None:
    """Report the step result (Succeeded, SucceededWithIssues or Failed)."""
    out = stream or sys.stdout
    out.write(f"##vso[task.complete result={result};]{_escape(message)}\n")
    out.flush()
