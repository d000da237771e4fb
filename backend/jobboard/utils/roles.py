from fastapi import Depends, HTTPException

from ..models.user import User
from .dependencies import get_current_user
from .error_handlers import get_error_message


def _role_required(required_role: str, message_key: str):
    def check_role(user: User = Depends(get_current_user)) -> User:
        if user.role != required_role:
            raise HTTPException(status_code=403, detail=get_error_message(message_key))
        return user
    return check_role


employer_only = _role_required("employer", "employer_only")
employee_only = _role_required("employee", "employee_only")
