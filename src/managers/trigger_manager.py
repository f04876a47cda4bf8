"""Utility helpers for working with Data Factory triggers."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable
from urllib.parse import quote

import requests

from utils.azure_api import DATAFACTORY_API_VERSION, list_all_pages, response_detail
from utils.errors import AuthenticationError, ListingError, ToggleError
from utils.helpers import filter_by_name
from utils.targets import FactoryLocator

logger = logging.getLogger(__name__)

DEFAULT_THROTTLE = 5


class TriggerState(str, Enum):
    """Desired trigger state; the value is the action segment of the POST path."""

    START = "start"
    STOP = "stop"


@dataclass(frozen=True)
class TriggerJob:
    trigger_name: str
    desired_state: TriggerState


@dataclass(frozen=True)
class ToggleOutcome:
    job: TriggerJob
    error: ToggleError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ToggleSummary:
    """Per-job outcomes of one toggle run, in completion order.

    `skipped` holds jobs that never started because an earlier failure
    aborted the run.
    """

    outcomes: tuple[ToggleOutcome, ...] = ()
    skipped: tuple[TriggerJob, ...] = ()

    @property
    def succeeded(self) -> list[TriggerJob]:
        return [o.job for o in self.outcomes if o.succeeded]

    @property
    def failures(self) -> list[ToggleOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def all_succeeded(self) -> bool:
        return not self.failures and not self.skipped


def build_trigger_jobs(
    items: Iterable[dict[str, Any]], desired_state: TriggerState
) -> list[TriggerJob]:
    """Create one job per distinct trigger name, keeping the first occurrence."""
    seen: set[str] = set()
    jobs: list[TriggerJob] = []
    for item in items:
        name = item.get("name")
        if not isinstance(name, str) or name in seen:
            continue
        seen.add(name)
        jobs.append(TriggerJob(trigger_name=name, desired_state=desired_state))
    return jobs


class TriggerManager:
    """Trigger operations (list/toggle)."""

    def __init__(self, client: Any):
        self.client = client

    def _triggers_url(self, factory: FactoryLocator) -> str:
        return self.client.resource_url(f"{factory.factory_path}/triggers")

    def list_triggers(self, factory: FactoryLocator) -> list[dict[str, Any]]:
        """Return all triggers of a factory (paginated via nextLink)."""

        def fetch_page(next_link: str | None) -> dict[str, Any]:
            if next_link:
                url, params = next_link, None
            else:
                url, params = self._triggers_url(factory), {"api-version": DATAFACTORY_API_VERSION}
            try:
                response = self.client.get(url, params=params)
            except (requests.RequestException, AuthenticationError) as exc:
                raise ListingError(
                    f"Failed to list triggers of Data Factory '{factory.factory_name}': {exc}",
                ) from exc
            if response.status_code != 200:
                raise ListingError(
                    f"Failed to list triggers of Data Factory '{factory.factory_name}' "
                    f"(HTTP {response.status_code}): {response_detail(response)}",
                )
            try:
                payload = response.json()
            except ValueError as exc:
                raise ListingError(
                    f"Trigger list of Data Factory '{factory.factory_name}' is not valid JSON.",
                ) from exc
            if not isinstance(payload, dict):
                raise ListingError(
                    f"Trigger list of Data Factory '{factory.factory_name}' is not a JSON object.",
                )
            return payload

        return list_all_pages(fetch_page)

    def get_trigger_jobs(
        self,
        factory: FactoryLocator,
        trigger_filter: str,
        desired_state: TriggerState,
    ) -> list[TriggerJob]:
        """List triggers and turn the ones matching `trigger_filter` into jobs."""
        matching = filter_by_name(self.list_triggers(factory), trigger_filter)
        jobs = build_trigger_jobs(matching, desired_state)
        logger.info("Found %d trigger(s).", len(jobs))
        return jobs

    def toggle_trigger(self, factory: FactoryLocator, job: TriggerJob) -> None:
        """Switch one trigger to its desired state.

        Raises:
            ToggleError: On a non-200 answer, a transport failure or a token failure.
        """
        state = job.desired_state.value
        url = self.client.resource_url(
            f"{factory.factory_path}/triggers/{quote(job.trigger_name, safe='')}/{state}"
        )
        try:
            response = self.client.post(
                url,
                params={"api-version": DATAFACTORY_API_VERSION},
                headers={"Content-Type": "application/json"},
            )
        except (requests.RequestException, AuthenticationError) as exc:
            raise ToggleError(job.trigger_name, state, detail=str(exc)) from exc
        if response.status_code != 200:
            raise ToggleError(
                job.trigger_name,
                state,
                status_code=response.status_code,
                detail=response_detail(response),
            )

    def toggle_triggers(
        self,
        factory: FactoryLocator,
        jobs: Iterable[TriggerJob],
        *,
        throttle: int = DEFAULT_THROTTLE,
        continue_on_error: bool = False,
    ) -> ToggleSummary:
        """Toggle every job with at most `throttle` requests in flight.

        With `continue_on_error`, failures are logged as warnings and every job
        is attempted. Otherwise the first failure stops jobs that have not
        started yet, running ones finish, and that failure is raised.

        Raises:
            ValueError: If `throttle` is not a positive integer.
            ToggleError: On a failure when `continue_on_error` is off.
        """
        if throttle < 1:
            raise ValueError("throttle must be a positive integer.")
        jobs = list(jobs)
        if not jobs:
            return ToggleSummary()

        abort = threading.Event()

        def run(job: TriggerJob) -> ToggleOutcome | None:
            if abort.is_set():
                return None
            logger.info("Toggle '%s' to '%s'.", job.trigger_name, job.desired_state.value)
            try:
                self.toggle_trigger(factory, job)
            except ToggleError as exc:
                if continue_on_error:
                    logger.warning("%s", exc)
                else:
                    abort.set()
                    logger.error("%s", exc)
                return ToggleOutcome(job, exc)
            return ToggleOutcome(job)

        outcomes: list[ToggleOutcome] = []
        skipped: list[TriggerJob] = []
        with ThreadPoolExecutor(max_workers=min(throttle, len(jobs))) as pool:
            futures = {pool.submit(run, job): job for job in jobs}
            for future in as_completed(futures):
                outcome = future.result()
                if outcome is None:
                    skipped.append(futures[future])
                else:
                    outcomes.append(outcome)

        summary = ToggleSummary(outcomes=tuple(outcomes), skipped=tuple(skipped))
        logger.debug("%d trigger(s) toggled.", len(summary.succeeded))

        if summary.failures and not continue_on_error:
            if summary.skipped:
                logger.debug("Cancelled %d pending toggle(s).", len(summary.skipped))
            raise summary.failures[0].error
        return summary
