from typing import Annotated
from fastapi import Depends
from core.exceptions import AuthorizationError
from core.roles import ROLE_PRE_AUTH, ROLE_SUPER_ADMIN, STORE_ROLES
from utils.deps import CurrentUser, get_current_user


def require_role(*allowed: str):
    """
    Dependency factory for role checks.

    Use: ``Depends(require_role(ROLE_SUPER_ADMIN))``. Returns the current
    user when its role is one of ``allowed``; raises AuthorizationError
    otherwise. Pre-auth tokens never pass.
    """
    allowed_set = set(allowed)

    def _checker(user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
        if user.role == ROLE_PRE_AUTH or user.role not in allowed_set:
            raise AuthorizationError(f"Requer permissão: {' ou '.join(allowed)}")
        return user

    return _checker


store_user_dependency = Annotated[CurrentUser, Depends(require_role(*STORE_ROLES))]
super_admin_dependency = Annotated[CurrentUser, Depends(require_role(ROLE_SUPER_ADMIN))]
