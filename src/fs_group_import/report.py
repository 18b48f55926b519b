"""Run reports: one JSON and one CSV file per run."""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pandas as pd

from .models import GroupOutcome, OutcomeStatus

logger = logging.getLogger(__name__)

REPORT_PREFIX = "group-import"
REPORT_COLUMNS = [
    "group_name",
    "status",
    "http_status",
    "error_message",
    "request_id",
    "group_id",
    "attempts",
    "source",
]


@dataclass(frozen=True)
class ReportPaths:
    json_path: Path
    csv_path: Path


def summarize(outcomes: list[GroupOutcome]) -> dict[str, int]:
    """Count outcomes per status."""
    counts = Counter(outcome.status for outcome in outcomes)
    summary = {"total": len(outcomes)}
    summary.update({str(status): counts.get(status, 0) for status in OutcomeStatus})
    return summary


class ReportWriter:
    """Writes timestamped reports into ``output_dir``.

    Report files are created exclusively; an existing file is never replaced.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def report_stem(self, run_id: str, started_at: datetime) -> str:
        return f"{REPORT_PREFIX}_{started_at.strftime('%Y%m%d-%H%M%S')}_{run_id}"

    def write(
        self, outcomes: list[GroupOutcome], run_id: str, started_at: datetime
    ) -> ReportPaths:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stem = self.report_stem(run_id, started_at)
        paths = ReportPaths(
            json_path=self.output_dir / f"{stem}.json",
            csv_path=self.output_dir / f"{stem}.csv",
        )
        rows = [outcome.to_row() for outcome in outcomes]

        with open(paths.json_path, "x", encoding="utf-8") as f:
            json.dump(
                {
                    "run_id": run_id,
                    "started_at": started_at.isoformat(),
                    "summary": summarize(outcomes),
                    "results": rows,
                },
                f,
                indent=2,
                default=str,
            )

        df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
        df["http_status"] = df["http_status"].astype("Int64")
        with open(paths.csv_path, "x", encoding="utf-8", newline="") as f:
            df.to_csv(f, index=False)

        logger.info("Report written to %s and %s", paths.json_path, paths.csv_path)
        return paths
