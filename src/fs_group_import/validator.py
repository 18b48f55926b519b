"""Field validation for parsed groups."""

from __future__ import annotations

import logging
import re

from .models import GroupSpec, ValidationResult

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_group(spec: GroupSpec, require_email: bool = True) -> ValidationResult:
    """Check *spec* against every rule and collect all violations."""
    errors: list[str] = []

    if not spec.name.strip():
        errors.append("group name is empty")

    for position, resource in enumerate(spec.resources, start=1):
        if not resource.type.strip():
            errors.append(f"resource #{position} has an empty type")
            if not resource.ids:
                errors.append(f"resource #{position} has no IDs")
        elif not resource.ids:
            errors.append(f"resource type '{resource.type}' has no IDs")

    for position, principal in enumerate(spec.principals, start=1):
        if not principal.strip():
            errors.append(f"principal #{position} is empty")
            continue
        if require_email and not EMAIL_PATTERN.match(principal):
            errors.append(f"principal '{principal}' is not a valid email address")
        if not spec.roles_for(principal):
            errors.append(f"principal '{principal}' has no roles")

    errors.extend(spec.parse_errors)

    return ValidationResult(group_name=spec.name, source=spec.source, errors=tuple(errors))


def validate_groups(specs: list[GroupSpec], require_email: bool = True) -> list[ValidationResult]:
    """Validate every group independently. Results keep input order."""
    results = [validate_group(spec, require_email) for spec in specs]

    invalid = [r for r in results if not r.valid]
    if invalid:
        logger.warning("%d group(s) have validation errors", len(invalid))
        for result in invalid[:5]:
            logger.warning(
                "  %s (%s): %s", result.group_name or "<unnamed>", result.source, result.message
            )
        if len(invalid) > 5:
            logger.warning("  ... and %d more", len(invalid) - 5)

    return results
