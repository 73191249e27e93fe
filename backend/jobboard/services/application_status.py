"""
Application status transitions.

    pending -> accepted | rejected

accepted and rejected are terminal. Writing the status an application already
has is accepted as a no-op so a retried request does not fail.
"""
from datetime import datetime, timezone
from typing import Any

from ..models.application import APPLICATION_STATUSES
from ..utils.error_handlers import ValidationError, get_error_message

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"accepted", "rejected"}),
    "accepted": frozenset(),
    "rejected": frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    if target not in APPLICATION_STATUSES:
        return False
    return current == target or target in ALLOWED_TRANSITIONS.get(current, frozenset())


def apply_status_change(application: Any, target: str) -> bool:
    """
    Move ``application`` to ``target``. Returns False for a same-status write.

    Raises ValidationError when the move leaves a terminal state or ``target``
    is not a known status.
    """
    current = application.status or "pending"
    if target not in APPLICATION_STATUSES:
        raise ValidationError(get_error_message("invalid_application_status"))
    if current == target:
        return False
    if not can_transition(current, target):
        raise ValidationError(
            get_error_message("application_finalized", status=current),
            details={"from": current, "to": target},
        )

    application.status = target
    application.updated_at = datetime.now(timezone.utc)
    return True
