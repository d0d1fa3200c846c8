from fastapi import APIRouter, Request
from starlette import status
from schemas.auth_schemas import SessionUser
from middleware.rate_limiter import limiter
from utils.deps import session_service_dependency
from utils.permissions import store_user_dependency


router = APIRouter(
    prefix="/users",
    tags=["users"]
)

@router.get("/me", response_model=SessionUser, status_code=status.HTTP_200_OK)
@limiter.limit("30/minute")
async def get_user_info(request: Request, user: store_user_dependency, service: session_service_dependency):
    """
    Current user as seen by the session it is logged into.
    """
    return service.get_session_user(user.user_id, user.profile_id)
