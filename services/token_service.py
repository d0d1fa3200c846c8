import secrets
import hashlib
from datetime import datetime, timezone, timedelta
from sqlalchemy.orm import Session
from jose import jwt, JWTError
from models.refresh_tokens import RefreshToken
from core.config import settings
from utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TokenService:
    """
    Issues and checks session credentials.

    Access tokens are stateless JWTs. Refresh tokens are random secrets; the
    database only ever sees their SHA-256.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def create_access_token(email: str, user_id: int, profile_id: int | None,
                            store_id: int | None, role: str,
                            expires_delta: timedelta | None = None) -> str:
        """
        Creates a signed access token.

        Args:
            email: User's email (``sub`` claim)
            user_id: User's ID
            profile_id: Profile the session acts as (None for pre-auth)
            store_id: Store of that profile (None for pre-auth)
            role: Role inside the store
            expires_delta: Lifetime (default ACCESS_TOKEN_EXPIRE_MINUTES)
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        payload = {
            "sub": email,
            "id": user_id,
            "profile_id": profile_id,
            "loja_id": store_id,
            "role": role,
            "type": ACCESS_TOKEN_TYPE,
            "exp": utcnow() + expires_delta
        }

        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_access_token(token: str) -> dict:
        """
        Verifies signature and expiry and returns the claims.

        Raises:
            JWTError: bad signature, expired, wrong type or missing claims
        """
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise JWTError("Invalid token type")

        if not payload.get("sub") or payload.get("id") is None or not payload.get("role"):
            raise JWTError("Invalid token payload")

        return payload

    @staticmethod
    def generate_refresh_secret() -> str:
        return secrets.token_urlsafe(48)

    @staticmethod
    def hash_token(raw_token: str) -> str:
        return hashlib.sha256(raw_token.encode()).hexdigest()

    def issue_refresh_token(self, user_id: int, profile_id: int, store_id: int) -> str:
        """
        Creates and stores a refresh token for one profile.

        Returns:
            The raw secret. It is not recoverable afterwards.
        """
        raw_token = self.generate_refresh_secret()

        self.db.add(RefreshToken(
            user_id=user_id,
            profile_id=profile_id,
            store_id=store_id,
            token_hash=self.hash_token(raw_token),
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        ))
        self.db.commit()

        logger.debug(
            "Refresh token issued",
            extra={"user_id": user_id, "profile_id": profile_id, "store_id": store_id}
        )

        return raw_token

    def find_valid_refresh_token(self, raw_token: str) -> RefreshToken | None:
        """Stored record for ``raw_token`` if it is neither revoked nor expired."""
        db_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == self.hash_token(raw_token)
        ).first()

        if db_token is None or db_token.revoked_at is not None:
            return None

        if as_utc(db_token.expires_at) <= utcnow():
            return None

        return db_token

    def revoke_refresh_token(self, raw_token: str) -> bool:
        """
        Marks the token revoked. Unknown and already revoked tokens are left
        alone.

        Returns:
            True when a row was revoked by this call
        """
        db_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == self.hash_token(raw_token),
            RefreshToken.revoked_at.is_(None)
        ).first()

        if db_token is None:
            return False

        db_token.revoked_at = utcnow()
        self.db.commit()
        return True

