"""
Status condition helpers.

Conditions are kept as plain dicts in Kubernetes camelCase form. The list
holds at most one entry per type; upsert_condition is the only way entries
are added or replaced.
"""

from datetime import UTC, datetime
from typing import Any

from ..constants import CONDITION_FALSE, CONDITION_TRUE, CONDITION_UNKNOWN

VALID_STATUSES = frozenset({CONDITION_TRUE, CONDITION_FALSE, CONDITION_UNKNOWN})


def build_condition(
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    generation: int | None = None,
) -> dict[str, Any]:
    """Create a condition stamped with the current time."""
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid condition status '{status}'")

    condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": datetime.now(UTC).isoformat(),
    }
    if generation is not None:
        condition["observedGeneration"] = generation
    return condition


def upsert_condition(
    conditions: list[dict[str, Any]] | None, condition: dict[str, Any]
) -> list[dict[str, Any]]:
    """
    Add or replace a condition by type.

    An existing entry of the same type is replaced at its current position;
    otherwise the condition is appended. The input list is not modified.

    Args:
        conditions: Current conditions (None is treated as empty)
        condition: Condition to record

    Returns:
        New list of conditions
    """
    updated = list(conditions or [])
    for index, existing in enumerate(updated):
        if existing.get("type") == condition["type"]:
            updated[index] = condition
            return updated
    updated.append(condition)
    return updated


def get_condition(
    conditions: list[dict[str, Any]] | None, condition_type: str
) -> dict[str, Any] | None:
    """Get a specific status condition."""
    for condition in conditions or []:
        if condition.get("type") == condition_type:
            return condition
    return None
