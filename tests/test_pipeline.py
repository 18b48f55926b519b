from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx

from fs_group_import.config import ApiConfig, ConfigError
from fs_group_import.models import OutcomeStatus
from fs_group_import.parser import ParseError
from fs_group_import.pipeline import RunContext, check_groups, run_import
from tests.utils import GROUPS_URL, OPERATOR_ROWS, build_sheet_workbook, make_config


@pytest.fixture
def plant_workbook(tmp_path: Path) -> Path:
    return build_sheet_workbook(
        tmp_path / "plant.xlsx",
        [
            ("Operators", None, "Line operators", OPERATOR_ROWS),
            ("Contractors", None, None, [("machine", "M9", "not-an-email", "viewer")]),
            ("Maintenance", "Maint Crew", None, [("line", "L1", "carol@example.com", "r")]),
        ],
    )


@respx.mock
def test_full_run_reports_every_group_in_input_order(
    plant_workbook: Path, api_config: ApiConfig, tmp_path: Path
) -> None:
    route = respx.post(GROUPS_URL).mock(
        return_value=httpx.Response(201, json={"id": "g"}, headers={"X-Request-ID": "req"})
    )
    config = make_config(
        api_config, input_file=plant_workbook, output_dir=tmp_path / "reports", concurrency=2
    )

    result = run_import(config, run_id="run00001", show_progress=False)

    assert [(o.group_name, o.status) for o in result.outcomes] == [
        ("Operators", OutcomeStatus.CREATED),
        ("Contractors", OutcomeStatus.SKIPPED),
        ("Maint Crew", OutcomeStatus.CREATED),
    ]
    assert result.outcomes[1].error_message == (
        "principal 'not-an-email' is not a valid email address"
    )
    assert result.summary == {"total": 3, "created": 2, "skipped": 1, "failed": 0}
    assert route.call_count == 2

    bodies = sorted((json.loads(c.request.content) for c in route.calls), key=lambda b: b["name"])
    assert bodies[1]["name"] == "Operators"
    assert bodies[1]["description"] == "Line operators"
    assert bodies[1]["accountId"] == "acct-1"
    assert bodies[1]["resources"] == [
        {"type": "machine", "ids": ["M1", "M2", "M3"]},
        {"type": "line", "ids": ["L1", "L2"]},
    ]

    report = json.loads(result.report.json_path.read_text())
    assert [r["group_name"] for r in report["results"]] == ["Operators", "Contractors", "Maint Crew"]
    assert result.report.csv_path.exists()


@respx.mock(assert_all_called=False)
def test_dry_run_needs_no_api_settings(plant_workbook: Path, tmp_path: Path) -> None:
    route = respx.post(GROUPS_URL)
    config = make_config(ApiConfig(), input_file=plant_workbook, dry_run=True, output_dir=tmp_path)

    result = run_import(config, show_progress=False)

    assert route.call_count == 0
    assert [o.status for o in result.outcomes] == [OutcomeStatus.SKIPPED] * 3
    assert [o.error_message for o in result.outcomes][0::2] == ["dry-run", "dry-run"]
    assert result.dry_run


@respx.mock(assert_all_called=False)
def test_parse_error_aborts_before_any_request(tmp_path: Path, api_config: ApiConfig) -> None:
    route = respx.post(GROUPS_URL)
    path = build_sheet_workbook(
        tmp_path / "bad.xlsx",
        [
            ("Operators", None, None, OPERATOR_ROWS),
            ("Broken", None, None, OPERATOR_ROWS),
        ],
        header=("Type",),
    )
    config = make_config(api_config, input_file=path, output_dir=tmp_path / "reports")

    with pytest.raises(ParseError):
        run_import(config, show_progress=False)

    assert route.call_count == 0
    assert not (tmp_path / "reports").exists()


def test_real_run_requires_api_settings(plant_workbook: Path) -> None:
    config = make_config(ApiConfig(base_url="https://acl.test"), input_file=plant_workbook)

    with pytest.raises(ConfigError, match="GROUP_IMPORT_API_AUTH_TOKEN"):
        run_import(config)


def test_input_file_is_required(api_config: ApiConfig) -> None:
    with pytest.raises(ConfigError, match="No input file"):
        check_groups(make_config(api_config))


def test_check_groups_returns_specs_and_results(plant_workbook: Path, api_config: ApiConfig) -> None:
    specs, results = check_groups(make_config(api_config, input_file=plant_workbook))

    assert [s.name for s in specs] == ["Operators", "Contractors", "Maint Crew"]
    assert [r.valid for r in results] == [True, False, True]


def test_run_context_slots_are_filled_once(api_config: ApiConfig) -> None:
    from datetime import datetime

    from fs_group_import.models import GroupOutcome

    context = RunContext(config=make_config(api_config), run_id="r", started_at=datetime.now())
    context.reserve(2)
    outcome = GroupOutcome(group_name="A", status=OutcomeStatus.CREATED)
    context.record(1, outcome)

    with pytest.raises(RuntimeError, match="already filled"):
        context.record(1, outcome)
    with pytest.raises(RuntimeError, match="No outcome recorded"):
        context.completed()
