"""Bounded-concurrency dispatch of create-group requests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

import httpx
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from .client import GroupApiClient, GroupApiError
from .models import GroupOutcome, GroupSpec, OutcomeStatus
from .retry import RetryPolicy, classify_status

logger = logging.getLogger(__name__)

DRY_RUN_REASON = "dry-run"


@dataclass(frozen=True)
class PreparedGroup:
    """A validated group and its request body."""

    spec: GroupSpec
    payload: dict[str, Any]


class GroupDispatcher:
    """Send one create-group request per prepared group.

    Outcomes come back in the same order as the input, whatever order the
    requests finish in.
    """

    def __init__(
        self,
        client: GroupApiClient | None,
        retry_policy: RetryPolicy | None = None,
        *,
        concurrency: int = 4,
        dry_run: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        show_progress: bool = True,
        console: Console | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if client is None and not dry_run:
            raise ValueError("a client is required unless dry_run is set")
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.concurrency = concurrency
        self.dry_run = dry_run
        self.sleep = sleep
        self.show_progress = show_progress
        self.console = console

    def dispatch(self, jobs: list[PreparedGroup]) -> list[GroupOutcome]:
        if not jobs:
            return []

        if self.dry_run:
            logger.info("[DRY RUN] Would create %d group(s)", len(jobs))
            for job in jobs:
                logger.debug("[DRY RUN] %s: %s", job.spec.name, job.payload)
            return [
                GroupOutcome(
                    group_name=job.spec.name,
                    status=OutcomeStatus.SKIPPED,
                    source=job.spec.source,
                    error_message=DRY_RUN_REASON,
                )
                for job in jobs
            ]

        logger.info("Creating %d group(s) with concurrency=%d", len(jobs), self.concurrency)
        outcomes: list[GroupOutcome | None] = [None] * len(jobs)
        created = failed = 0

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.fields[status]}"),
            console=self.console,
            disable=not self.show_progress,
        )

        with progress, ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            task_id = progress.add_task("Creating groups", total=len(jobs), status="")
            futures = {executor.submit(self._create_one, job): i for i, job in enumerate(jobs)}
            for future in as_completed(futures):
                index = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    job = jobs[index]
                    logger.exception("Unexpected error creating group '%s'", job.spec.name)
                    outcome = GroupOutcome(
                        group_name=job.spec.name,
                        status=OutcomeStatus.FAILED,
                        source=job.spec.source,
                        error_message=str(e) or type(e).__name__,
                    )
                outcomes[index] = outcome

                if outcome.status is OutcomeStatus.CREATED:
                    created += 1
                else:
                    failed += 1
                    logger.warning("Failed: %s: %s", outcome.group_name, outcome.error_message)
                progress.update(task_id, advance=1, status=f"ok={created} fail={failed}")

        return [outcome for outcome in outcomes if outcome is not None]

    def _create_one(self, job: PreparedGroup) -> GroupOutcome:
        """Create one group, retrying transient failures per the policy."""
        client = self.client
        if client is None:
            raise RuntimeError("No API client configured for a real run")
        attempt = 0
        while True:
            attempt += 1
            try:
                result = client.create_group(job.payload)
            except GroupApiError as e:
                status_code, message = e.status_code, str(e)
            except httpx.RequestError as e:
                status_code, message = None, f"{type(e).__name__}: {e}"
            else:
                logger.info(
                    "Created group '%s' (HTTP %d, id=%s)",
                    job.spec.name,
                    result.status_code,
                    result.group_id,
                )
                return GroupOutcome(
                    group_name=job.spec.name,
                    status=OutcomeStatus.CREATED,
                    source=job.spec.source,
                    http_status=result.status_code,
                    request_id=result.request_id,
                    group_id=result.group_id,
                    attempts=attempt,
                )

            decision = self.retry_policy.decide(attempt, classify_status(status_code))
            if not decision.should_retry:
                return GroupOutcome(
                    group_name=job.spec.name,
                    status=OutcomeStatus.FAILED,
                    source=job.spec.source,
                    http_status=status_code,
                    error_message=message,
                    attempts=attempt,
                )

            logger.warning(
                "Request for '%s' failed (%s), retry %d/%d in %.1fs",
                job.spec.name,
                status_code or "connection error",
                attempt,
                self.retry_policy.max_attempts - 1,
                decision.delay,
            )
            self.sleep(decision.delay)
