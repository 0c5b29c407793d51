"""
Per-node outcome records for the run summary.

A pipeline outcome is a plain dict so it can be printed, compared in tests or
dumped as JSON without extra conversion. Keystore passwords and private keys
never reach error classes, so nothing secret ends up in these records.
"""

from typing import Any, Iterable, Optional

from avabox.commands.errors import AvaboxError


def ok(data: Optional[Any] = None, **extras: Any) -> dict[str, Any]:
    """Outcome of a node whose pipeline completed."""
    outcome: dict[str, Any] = {"success": True, **extras}
    if data is not None:
        outcome["data"] = data
    return outcome


def fail(
    message: str, *, error: Optional[Exception] = None, **extras: Any
) -> dict[str, Any]:
    """Outcome of a node whose pipeline stopped.

    Typed avabox errors contribute their code and context (step, subnet, node
    index) under ``error_code`` and ``error_details``.
    """
    outcome: dict[str, Any] = {"success": False, "error": message, **extras}
    if error is not None:
        outcome.update(describe_error(error))
    return outcome


def describe_error(error: Exception) -> dict[str, Any]:
    """Flatten an exception into outcome fields."""
    fields: dict[str, Any] = {"error_type": type(error).__name__}
    if isinstance(error, AvaboxError):
        if error.code:
            fields["error_code"] = error.code
        if error.details:
            fields["error_details"] = dict(error.details)
    return fields


def all_succeeded(outcomes: Iterable[dict[str, Any]]) -> bool:
    return all(outcome.get("success") for outcome in outcomes)
