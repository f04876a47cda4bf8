#!/usr/bin/env python3
"""
Start or stop the triggers of an Azure Data Factory.

Lists the factory's triggers, keeps the ones whose name matches a wildcard
filter (`*` and `?`), and switches each of them to the requested state with
a bounded number of concurrent requests.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import pathlib
import sys

SRC_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from managers.trigger_manager import DEFAULT_THROTTLE, TriggerState  # noqa: E402
from managers.workflow_manager import RunResult, ToggleOptions, TriggerToggleWorkflow  # noqa: E402
from utils.auth import AUTH_SCHEMES, AUTH_SERVICE_PRINCIPAL, login  # noqa: E402
from utils.azure_api import DEFAULT_MANAGEMENT_URL  # noqa: E402
from utils.errors import TriggerToggleError  # noqa: E402
from utils.helpers import ensure_output_directory  # noqa: E402
from utils.pipeline import complete_task, configure_logging, running_in_pipeline  # noqa: E402
from utils.targets import DEFAULT_TARGETS_CONFIG, TARGETS_ENV_VAR, resolve_factory_locator  # noqa: E402

logger = logging.getLogger("toggle_adf_triggers")

EXIT_CODES = {
    RunResult.SUCCEEDED: 0,
    RunResult.FAILED: 1,
    RunResult.SUCCEEDED_WITH_ISSUES: 3,
}


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got '{value}'")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Start or stop Azure Data Factory triggers matching a wildcard filter.",
    )
    parser.add_argument(
        "--subscription-id",
        help="Azure subscription ID. Defaults to AZURE_SUBSCRIPTION_ID or the target mapping.",
    )
    parser.add_argument("--resource-group", help="Resource group of the Data Factory.")
    parser.add_argument("--factory-name", help="Data Factory name.")
    parser.add_argument(
        "--target-key",
        help="Target key defined in the YAML mapping for factory lookup.",
    )
    parser.add_argument(
        "--config-path",
        help=(
            "Path to the target configuration YAML. "
            f"Defaults to {DEFAULT_TARGETS_CONFIG} (or JSON in {TARGETS_ENV_VAR}) "
            "when --target-key is used."
        ),
    )
    parser.add_argument(
        "--trigger-filter",
        default="*",
        help="Wildcard filter on trigger names ('*' any run, '?' one character). Default: *",
    )
    parser.add_argument(
        "--state",
        required=True,
        choices=[state.value for state in TriggerState],
        help="Desired trigger state.",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep toggling the remaining triggers when one fails; the run ends with issues.",
    )
    parser.add_argument(
        "--throttle",
        type=_positive_int,
        default=DEFAULT_THROTTLE,
        help=f"Maximum number of concurrent toggle requests. Default: {DEFAULT_THROTTLE}",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the matching triggers without toggling them.",
    )
    parser.add_argument(
        "--output",
        help="Optional path to write the run summary as JSON. Defaults to printing to stdout.",
    )
    parser.add_argument(
        "--auth",
        default=os.getenv("AZURE_AUTH_SCHEME", AUTH_SERVICE_PRINCIPAL),
        help=(
            f"Auth scheme: {' or '.join(AUTH_SCHEMES)}. Defaults to AZURE_AUTH_SCHEME "
            f"or {AUTH_SERVICE_PRINCIPAL}. The client secret is read from AZURE_CLIENT_SECRET."
        ),
    )
    parser.add_argument(
        "--client-id",
        default=os.getenv("AZURE_CLIENT_ID"),
        help="Service principal (or user-assigned identity) client ID. Defaults to AZURE_CLIENT_ID.",
    )
    parser.add_argument(
        "--tenant-id",
        default=os.getenv("AZURE_TENANT_ID"),
        help="Tenant ID for service principal login. Defaults to AZURE_TENANT_ID.",
    )
    parser.add_argument(
        "--management-url",
        default=os.getenv("AZURE_MANAGEMENT_URL", DEFAULT_MANAGEMENT_URL),
        help=f"Management endpoint. Default: {DEFAULT_MANAGEMENT_URL}",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _report(result: RunResult, message: str, *, pipeline: bool) -> int:
    if pipeline:
        complete_task(result.value, message)
        if result is RunResult.SUCCEEDED_WITH_ISSUES:
            return 0
    return EXIT_CODES[result]


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose)
    pipeline = running_in_pipeline()

    try:
        factory = resolve_factory_locator(
            args.subscription_id,
            args.resource_group,
            args.factory_name,
            args.target_key,
            args.config_path,
        )
        options = ToggleOptions(
            desired_state=TriggerState(args.state),
            trigger_filter=args.trigger_filter,
            continue_on_error=args.continue_on_error,
            throttle=args.throttle,
            dry_run=args.dry_run,
        )
        logger.debug("Parsed task inputs")

        client = login(
            args.auth,
            client_id=args.client_id,
            client_secret=os.getenv("AZURE_CLIENT_SECRET"),
            tenant_id=args.tenant_id,
            base_url=args.management_url,
        )
        summary = TriggerToggleWorkflow(client).run(factory, options)
    except (TriggerToggleError, ValueError, FileNotFoundError) as error:
        logger.error("%s", error)
        return _report(RunResult.FAILED, str(error), pipeline=pipeline)

    payload = json.dumps(summary, indent=2, ensure_ascii=False)
    if args.output:
        ensure_output_directory(args.output)
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(payload)
        print(f"Wrote run summary to {args.output}")
    else:
        print(payload)

    return _report(RunResult(summary["result"]), "", pipeline=pipeline)


if __name__ == "__main__":
    sys.exit(main())
