from __future__ import annotations

import os
from pathlib import Path

import pytest

from fs_group_import.config import ApiConfig
from tests.utils import BASE_URL, OPERATOR_ROWS, TOKEN, build_sheet_workbook


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep stray .env files and GROUP_IMPORT_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("GROUP_IMPORT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def operators_workbook(tmp_path: Path) -> Path:
    return build_sheet_workbook(
        tmp_path / "groups.xlsx", [("Operators", None, None, OPERATOR_ROWS)]
    )


@pytest.fixture
def api_config() -> ApiConfig:
    return ApiConfig(base_url=BASE_URL, auth_token=TOKEN, account_id="acct-1")
