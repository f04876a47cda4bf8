"""High-level trigger workflow: check factory, list + filter triggers, toggle.

No rollback is attempted: triggers already toggled stay toggled when a later
one fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from managers.factory_manager import FactoryManager
from managers.trigger_manager import DEFAULT_THROTTLE, TriggerManager, TriggerState
from utils.targets import FactoryLocator

logger = logging.getLogger(__name__)


class RunResult(str, Enum):
    """Step result, spelled the way Azure Pipelines expects it."""

    SUCCEEDED = "Succeeded"
    SUCCEEDED_WITH_ISSUES = "SucceededWithIssues"
    FAILED = "Failed"


@dataclass(frozen=True)
class ToggleOptions:
    desired_state: TriggerState
    trigger_filter: str = "*"
    continue_on_error: bool = False
    throttle: int = DEFAULT_THROTTLE
    dry_run: bool = False


class TriggerToggleWorkflow:
    """Orchestrates check/list/toggle against one Data Factory."""

    def __init__(self, client: Any):
        self.client = client
        self.factories = FactoryManager(client)
        self.triggers = TriggerManager(client)

    def run(self, factory: FactoryLocator, options: ToggleOptions) -> dict[str, Any]:
        """Run the workflow and return a JSON-friendly summary.

        Raises:
            TriggerToggleError: On any fatal step (missing factory, listing
                failure, or a toggle failure without continue-on-error).
        """
        self.factories.ensure_factory_exists(factory)

        jobs = self.triggers.get_trigger_jobs(
            factory, options.trigger_filter, options.desired_state
        )
        summary: dict[str, Any] = {
            "factory": factory.factory_name,
            "resourceGroup": factory.resource_group,
            "triggerFilter": options.trigger_filter,
            "desiredState": options.desired_state.value,
            "dryRun": options.dry_run,
            "matched": [job.trigger_name for job in jobs],
            "succeeded": [],
            "failed": [],
            "skipped": [],
        }

        if options.dry_run:
            for job in jobs:
                logger.info(
                    "Dry run: would toggle '%s' to '%s'.",
                    job.trigger_name,
                    job.desired_state.value,
                )
            summary["result"] = RunResult.SUCCEEDED.value
            return summary

        toggled = self.triggers.toggle_triggers(
            factory,
            jobs,
            throttle=options.throttle,
            continue_on_error=options.continue_on_error,
        )
        summary["succeeded"] = sorted(job.trigger_name for job in toggled.succeeded)
        summary["failed"] = [
            {"trigger": o.job.trigger_name, "error": str(o.error)}
            for o in sorted(toggled.failures, key=lambda o: o.job.trigger_name)
        ]
        summary["skipped"] = sorted(job.trigger_name for job in toggled.skipped)

        if toggled.all_succeeded:
            summary["result"] = RunResult.SUCCEEDED.value
        else:
            logger.warning(
                "%d of %d trigger(s) could not be toggled to '%s'.",
                len(toggled.failures),
                len(jobs),
                options.desired_state.value,
            )
            summary["result"] = RunResult.SUCCEEDED_WITH_ISSUES.value
        return summary
