"""End-to-end import run: parse, validate, build, dispatch, report."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from rich.console import Console

from .client import GroupApiClient
from .config import AppConfig, ConfigError
from .dispatcher import GroupDispatcher, PreparedGroup
from .logging_utils import generate_run_id
from .models import GroupOutcome, GroupSpec, OutcomeStatus, ValidationResult
from .parser import parse_file
from .payload import build_payload
from .report import ReportPaths, ReportWriter, summarize
from .retry import RetryPolicy
from .validator import validate_groups

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """State for one run, passed explicitly between stages.

    ``outcomes`` has one slot per parsed group; each slot is filled once.
    """

    config: AppConfig
    run_id: str
    started_at: datetime
    outcomes: list[GroupOutcome | None] = field(default_factory=list)

    def reserve(self, count: int) -> None:
        self.outcomes = [None] * count

    def record(self, index: int, outcome: GroupOutcome) -> None:
        if self.outcomes[index] is not None:
            raise RuntimeError(f"Outcome slot {index} already filled")
        self.outcomes[index] = outcome

    def completed(self) -> list[GroupOutcome]:
        missing = [i for i, outcome in enumerate(self.outcomes) if outcome is None]
        if missing:
            raise RuntimeError(f"No outcome recorded for group index(es) {missing}")
        return [outcome for outcome in self.outcomes if outcome is not None]


@dataclass(frozen=True)
class RunResult:
    run_id: str
    outcomes: list[GroupOutcome]
    report: ReportPaths
    summary: dict[str, int]
    dry_run: bool


def input_path(config: AppConfig) -> Path:
    if config.run.input_file is None:
        raise ConfigError("No input file given")
    return config.run.input_file


def check_groups(config: AppConfig) -> tuple[list[GroupSpec], list[ValidationResult]]:
    """Parse and validate the input file without dispatching anything.

    Raises:
        ParseError: if the file is unreadable or does not match the layout
    """
    specs = parse_file(input_path(config), config.run.layout)
    return specs, validate_groups(specs, config.run.require_email_principals)


def run_import(
    config: AppConfig,
    *,
    client: GroupApiClient | None = None,
    sleep: Callable[[float], None] = time.sleep,
    run_id: str | None = None,
    show_progress: bool = True,
    console: Console | None = None,
) -> RunResult:
    """Run the full import and write the reports.

    Raises:
        ConfigError: if required settings are missing
        ParseError: before any request is sent, if the input is unusable
    """
    run = config.run
    if not run.dry_run and client is None:
        missing = config.api.missing_fields()
        if missing:
            raise ConfigError(
                "Missing API settings: "
                + ", ".join(f"GROUP_IMPORT_API_{name.upper()}" for name in missing)
            )

    context = RunContext(
        config=config,
        run_id=run_id or generate_run_id(),
        started_at=datetime.now(),
    )
    logger.info("Run %s started (dry run: %s)", context.run_id, run.dry_run)

    specs, results = check_groups(config)
    context.reserve(len(specs))

    jobs: list[PreparedGroup] = []
    job_slots: list[int] = []
    for index, (spec, result) in enumerate(zip(specs, results)):
        if result.valid:
            jobs.append(PreparedGroup(spec=spec, payload=build_payload(spec, config.api)))
            job_slots.append(index)
        else:
            context.record(
                index,
                GroupOutcome(
                    group_name=spec.name,
                    status=OutcomeStatus.SKIPPED,
                    source=spec.source,
                    error_message=result.message,
                ),
            )

    owns_client = client is None and not run.dry_run
    if owns_client:
        client = GroupApiClient(
            config.api.base_url,
            config.api.auth_token,
            groups_path=config.api.groups_path,
            timeout=config.api.timeout,
        )

    dispatcher = GroupDispatcher(
        client,
        RetryPolicy(max_attempts=run.max_retries),
        concurrency=run.concurrency,
        dry_run=run.dry_run,
        sleep=sleep,
        show_progress=show_progress,
        console=console,
    )
    try:
        dispatched = dispatcher.dispatch(jobs)
    finally:
        if owns_client and client is not None:
            client.close()

    for index, outcome in zip(job_slots, dispatched):
        context.record(index, outcome)

    outcomes = context.completed()
    report = ReportWriter(run.output_dir).write(outcomes, context.run_id, context.started_at)
    summary = summarize(outcomes)
    logger.info(
        "Run %s finished: %d created, %d skipped, %d failed",
        context.run_id,
        summary[OutcomeStatus.CREATED],
        summary[OutcomeStatus.SKIPPED],
        summary[OutcomeStatus.FAILED],
    )
    return RunResult(
        run_id=context.run_id,
        outcomes=outcomes,
        report=report,
        summary=summary,
        dry_run=run.dry_run,
    )
