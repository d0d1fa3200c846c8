from typing import Annotated, Optional
from fastapi import APIRouter, Cookie, Request, Response
from starlette import status
from core.config import settings
from core.exceptions import AuthenticationError
from schemas.auth_schemas import (LoginRequest, LoginResponse, PreAuthResponse, ProfileOption,
                                  RefreshResponse, RegisterStoreOwnerRequest, SelectStoreRequest)
from services.session_service import RequestContext
from middleware.rate_limiter import limiter
from middleware.request_id import get_client_ip
from utils.deps import session_service_dependency, user_dependency
from utils.logger import get_logger

# Setup logger
logger = get_logger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

REFRESH_COOKIE_MAX_AGE = settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

refresh_cookie_dependency = Annotated[Optional[str], Cookie(alias=settings.REFRESH_COOKIE_NAME)]


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.ENV == "production",
        "samesite": "strict",
        "path": "/",
    }


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        **_cookie_options()
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.REFRESH_COOKIE_NAME, **_cookie_options())


def request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip=get_client_ip(request),
        user_agent=request.headers.get("User-Agent", "")
    )


@router.post("/login", response_model=LoginResponse | PreAuthResponse)
@limiter.limit("5/minute")
async def login(request: Request, response: Response, body: LoginRequest,
                service: session_service_dependency):
    """
    Password login.

    Single-store users get the refresh cookie plus ``{accessToken, user}``.
    Multi-store users get a pre-auth token and their profiles, and finish
    with ``/auth/select-store``.
    """
    result = service.authenticate(body, request_context(request))

    if result.multi_profile:
        return PreAuthResponse(access_token=result.access_token, profiles=result.profiles)

    set_refresh_cookie(response, result.refresh_token)

    logger.info(
        "User logged in successfully",
        extra={"user_id": result.user.id, "store_id": result.user.loja_id}
    )

    return LoginResponse(access_token=result.access_token, user=result.user)


@router.post("/refresh", response_model=RefreshResponse)
@limiter.limit("10/minute")
async def refresh_token(request: Request, service: session_service_dependency,
                        refresh_cookie: refresh_cookie_dependency = None):
    """
    New access token from the refresh cookie.
    """
    if not refresh_cookie:
        raise AuthenticationError("Refresh token não encontrado.")

    access_token = service.refresh_token(refresh_cookie)

    logger.info("Access token refreshed")

    return RefreshResponse(access_token=access_token)


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(request: Request, response: Response, body: RegisterStoreOwnerRequest,
                   service: session_service_dependency):
    """
    Registers a store with its owner and logs the owner in.
    """
    result = service.register_store_owner(body)

    set_refresh_cookie(response, result.refresh_token)

    return LoginResponse(access_token=result.access_token, user=result.user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def logout(request: Request, service: session_service_dependency,
                 refresh_cookie: refresh_cookie_dependency = None):
    """
    Revokes the refresh cookie's token and clears the cookie. Always 204.
    """
    if refresh_cookie:
        service.logout(refresh_cookie)

    logger.info("User logged out")

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_refresh_cookie(response)
    return response


@router.post("/select-store", response_model=LoginResponse)
@limiter.limit("10/minute")
async def select_store(request: Request, response: Response, body: SelectStoreRequest,
                       user: user_dependency, service: session_service_dependency):
    """
    Finishes a multi-store login for the chosen profile.
    """
    result = service.select_store(user.user_id, body.profile_id, request_context(request))

    set_refresh_cookie(response, result.refresh_token)

    logger.info(
        "Store selected",
        extra={"user_id": user.user_id, "store_id": result.user.loja_id}
    )

    return LoginResponse(access_token=result.access_token, user=result.user)


@router.get("/profiles", response_model=list[ProfileOption])
async def list_profiles(user: user_dependency, service: session_service_dependency):
    """
    Active store profiles of the current user (for the store switcher).
    """
    return service.list_profiles(user.user_id)
