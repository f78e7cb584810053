"""
Domain Services

Pure decision logic that does not belong to a single entity.
"""

from typing import Optional

from stickydisk.domain.value_objects import ReconcileAction, StepFailureReport


def decide_reconcile_action(
    error_flag: bool,
    report: Optional[StepFailureReport],
) -> ReconcileAction:
    """
    Decide whether a sticky disk should be committed or discarded.

    | error_flag | step check          | action  |
    |------------|---------------------|---------|
    | true       | -                   | discard |
    | false      | check failed        | discard |
    | false      | failures found      | discard |
    | false      | no failures         | commit  |

    Args:
        error_flag: Whether setup (or unmount) recorded an error
        report: Upstream step failure report; None when not evaluated

    Returns:
        ReconcileAction.COMMIT or ReconcileAction.DISCARD
    """
    if error_flag:
        return ReconcileAction.DISCARD
    if report is None or report.is_ambiguous:
        return ReconcileAction.DISCARD
    if report.has_failures:
        return ReconcileAction.DISCARD
    return ReconcileAction.COMMIT


def parse_usage_bytes(raw: Optional[str]) -> Optional[int]:
    """
    Parse a ``df``-style used-bytes reading.

    Non-numeric or non-positive readings are treated as unknown rather
    than zero.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    # df prints a header line before the value
    token = text.splitlines()[-1].strip()
    try:
        value = int(token)
    except ValueError:
        return None
    if value <= 0:
        return None
    return value
