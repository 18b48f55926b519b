from __future__ import annotations

import logging

import pytest

from fs_group_import.models import GroupSpec, ResourceEntry, SourceRef
from fs_group_import.validator import validate_group, validate_groups

SOURCE = SourceRef(sheet="Ops")


def make_spec(**overrides: object) -> GroupSpec:
    fields: dict[str, object] = {
        "name": "Operators",
        "source": SOURCE,
        "resources": (ResourceEntry(type="machine", ids=("M1",)),),
        "principals": ("alice@example.com",),
        "role_assignments": (("alice@example.com", ("role-operator",)),),
    }
    fields.update(overrides)
    return GroupSpec(**fields)  # type: ignore[arg-type]


def test_valid_group_passes() -> None:
    result = validate_group(make_spec())

    assert result.valid
    assert result.errors == ()
    assert result.source == SOURCE


def test_empty_name_is_invalid() -> None:
    result = validate_group(make_spec(name="  "))

    assert not result.valid
    assert "group name is empty" in result.errors


@pytest.mark.parametrize(
    ("resource", "expected"),
    [
        (ResourceEntry(type="", ids=("M1",)), "resource #1 has an empty type"),
        (ResourceEntry(type="machine", ids=()), "resource type 'machine' has no IDs"),
    ],
)
def test_resource_rules(resource: ResourceEntry, expected: str) -> None:
    result = validate_group(make_spec(resources=(resource,)))

    assert result.errors == (expected,)


def test_principal_must_look_like_an_email() -> None:
    spec = make_spec(principals=("alice",), role_assignments=(("alice", ("r",)),))

    assert validate_group(spec).errors == ("principal 'alice' is not a valid email address",)
    assert validate_group(spec, require_email=False).valid


def test_principal_needs_a_role() -> None:
    spec = make_spec(role_assignments=(("alice@example.com", ()),))

    assert validate_group(spec).errors == ("principal 'alice@example.com' has no roles",)


def test_empty_principal_is_reported() -> None:
    spec = make_spec(principals=("",), role_assignments=(("", ("r",)),))

    assert validate_group(spec).errors == ("principal #1 is empty",)


def test_all_violations_are_reported_together() -> None:
    spec = make_spec(
        name="",
        resources=(ResourceEntry(type="", ids=()),),
        principals=("bob",),
        role_assignments=(("bob", ()),),
        parse_errors=("Principals has 2 item(s) but Roles has 3",),
    )

    result = validate_group(spec)

    assert result.errors == (
        "group name is empty",
        "resource #1 has an empty type",
        "resource #1 has no IDs",
        "principal 'bob' is not a valid email address",
        "principal 'bob' has no roles",
        "Principals has 2 item(s) but Roles has 3",
    )
    assert result.message.startswith("group name is empty; resource #1")


def test_validate_groups_keeps_order_and_logs_invalid(caplog: pytest.LogCaptureFixture) -> None:
    specs = [make_spec(name="A"), make_spec(name=""), make_spec(name="C")]

    with caplog.at_level(logging.WARNING, logger="fs_group_import.validator"):
        results = validate_groups(specs)

    assert [r.valid for r in results] == [True, False, True]
    assert [r.group_name for r in results] == ["A", "", "C"]
    assert "1 group(s) have validation errors" in caplog.text
