from dataclasses import dataclass
from typing import Annotated, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError
from core.database import SessionLocal
from core.exceptions import AuthenticationError
from services.token_service import TokenService
from services.log_service import LogService
from services.session_service import SessionService


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


@dataclass(frozen=True)
class CurrentUser:
    user_id: int
    email: str
    profile_id: Optional[int]
    store_id: Optional[int]
    role: str


bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]
) -> CurrentUser:
    """Resolve the bearer access token. Pure signature + expiry check, no DB."""
    if credentials is None:
        raise AuthenticationError("Token não fornecido.")

    try:
        payload = TokenService.decode_access_token(credentials.credentials)
    except JWTError:
        raise AuthenticationError("Token inválido ou expirado.")

    return CurrentUser(
        user_id=payload["id"],
        email=payload["sub"],
        profile_id=payload.get("profile_id"),
        store_id=payload.get("loja_id"),
        role=payload["role"],
    )

user_dependency = Annotated[CurrentUser, Depends(get_current_user)]


def get_log_service(db: db_dependency) -> LogService:
    return LogService(db)


def get_session_service(db: db_dependency) -> SessionService:
    return SessionService(db, TokenService(db), LogService(db))

log_service_dependency = Annotated[LogService, Depends(get_log_service)]
session_service_dependency = Annotated[SessionService, Depends(get_session_service)]
