"""Order-preserving accumulation of resources and role grants."""

from __future__ import annotations

from ..models import GroupSpec, ResourceEntry, SourceRef


def split_list(text: str, separator: str = ",") -> list[str]:
    """Split a delimited cell, trimming items and dropping empty ones."""
    return [item for item in split_positional(text, separator) if item]


def split_positional(text: str, separator: str = ",") -> list[str]:
    """Split a delimited cell, keeping empty items so positions line up.

    An empty cell yields an empty list.
    """
    if not text.strip():
        return []
    return [item.strip() for item in text.split(separator)]


class GroupAccumulator:
    """Collects rows belonging to one group into a :class:`GroupSpec`."""

    def __init__(self) -> None:
        # dicts used as ordered sets
        self._resources: dict[str, dict[str, None]] = {}
        self._values: dict[str, str] = {}
        self._roles: dict[str, dict[str, None]] = {}
        self.errors: list[str] = []

    def add_resource(self, rtype: str, ids: list[str], value: str | None = None) -> None:
        entry = self._resources.setdefault(rtype, {})
        for resource_id in ids:
            if resource_id:
                entry.setdefault(resource_id, None)
        if value and rtype not in self._values:
            self._values[rtype] = value

    def add_principal(self, principal: str, roles: list[str]) -> None:
        grants = self._roles.setdefault(principal, {})
        for role in roles:
            if role:
                grants.setdefault(role, None)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def build(self, name: str, source: SourceRef, description: str | None = None) -> GroupSpec:
        resources = tuple(
            ResourceEntry(type=rtype, ids=tuple(ids), value=self._values.get(rtype))
            for rtype, ids in self._resources.items()
        )
        return GroupSpec(
            name=name,
            source=source,
            description=description or None,
            resources=resources,
            principals=tuple(self._roles),
            role_assignments=tuple((p, tuple(roles)) for p, roles in self._roles.items()),
            parse_errors=tuple(self.errors),
        )
