from fastapi import Depends

from .dependencies import get_current_user
from .error_handlers import ForbiddenError


def _role_required(required_role: str):
    """Dependency factory: the caller's token must carry ``required_role``."""
    def check_role(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") != required_role:
            raise ForbiddenError(f"Only {required_role}s can perform this action")
        return user
    return check_role


recruiter_only = _role_required("recruiter")
candidate_only = _role_required("candidate")
