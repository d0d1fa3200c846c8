from dataclasses import dataclass
from datetime import timedelta
from core.config import settings
from core.roles import ROLE_EMPLOYEE
from models.stores import Store
from models.user_profiles import UserProfile
from models.users import User, UserPhone
from models.refresh_tokens import RefreshToken
from services.token_service import TokenService, utcnow
from utils.hashing import get_password_hash

COOKIE = settings.REFRESH_COOKIE_NAME


@dataclass
class Member:
    user: User
    store: Store
    profile: UserProfile
    password: str


def create_store_member(session, email, password, role=ROLE_EMPLOYEE, store_name="Loja Teste",
                        phones=(), profile_document="12345678909", user=None):
    """Creates (or reuses) a user and attaches a new store profile to it."""
    if user is None:
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            is_active=True,
            phones=[UserPhone(number=number) for number in phones]
        )
        session.add(user)
        session.flush()

    store = Store(name=store_name, admin_user_id=user.id)
    session.add(store)
    session.flush()

    profile = UserProfile(
        user_id=user.id,
        store_id=store.id,
        name=email.split("@")[0].title(),
        document=profile_document,
        role=role,
        job_title="Gerente" if role != ROLE_EMPLOYEE else None
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)

    return Member(user=user, store=store, profile=profile, password=password)


def bearer_for(member: Member) -> dict:
    token = TokenService.create_access_token(
        member.user.email, member.user.id, member.profile.id,
        member.store.id, member.profile.role
    )
    return {"Authorization": f"Bearer {token}"}


def store_refresh_token(session, member: Member, expires_in: timedelta, revoked=False) -> str:
    """Inserts a refresh token row directly and returns the raw secret."""
    raw = TokenService.generate_refresh_secret()
    session.add(RefreshToken(
        user_id=member.user.id,
        profile_id=member.profile.id,
        store_id=member.store.id,
        token_hash=TokenService.hash_token(raw),
        expires_at=utcnow() + expires_in,
        revoked_at=utcnow() if revoked else None
    ))
    session.commit()
    return raw


def refresh_set_cookie(response) -> str | None:
    """Raw Set-Cookie header for the refresh cookie, if the response sets one."""
    for header in response.headers.get_list("set-cookie"):
        if header.startswith(f"{COOKIE}="):
            return header
    return None


def refresh_cookie_value(response) -> str | None:
    header = refresh_set_cookie(response)
    if header is None:
        return None
    return header.split(";", 1)[0].split("=", 1)[1].strip('"')


async def post_with_refresh_cookie(client, url, token):
    """POST carrying only the given refresh cookie (the client jar is cleared first)."""
    client.cookies.clear()
    return await client.post(url, headers={"Cookie": f"{COOKIE}={token}"})
