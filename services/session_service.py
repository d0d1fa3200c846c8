from dataclasses import dataclass
from datetime import timedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from core.config import settings
from core.exceptions import (AuthorizationError, ConflictError, InvalidCredentials,
                             InvalidOrExpiredToken, NotFoundError)
from core.roles import ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_PRE_AUTH
from models.stores import Store
from models.user_profiles import UserProfile
from models.users import User, UserPhone
from schemas.auth_schemas import (LoginRequest, ProfileOption, RegisterStoreOwnerRequest,
                                  SessionResult, SessionUser)
from services.log_service import LogService
from services.token_service import TokenService
from utils.hashing import get_password_hash, verify_password
from utils.logger import get_logger

logger = get_logger(__name__)

OWNER_JOB_TITLE = "Proprietário"
DEFAULT_JOB_TITLE = "Funcionário"
REGISTRATION_ACTION = "REGISTRO_LOJA"

# Unknown emails are checked against this so both failure paths cost one bcrypt round
DUMMY_PASSWORD_HASH = get_password_hash("vlstore-dummy-password")


@dataclass(frozen=True)
class RequestContext:
    """Where a login came from, for the access log."""
    ip: str
    user_agent: str


# Registration logs in without an HTTP login request of its own
REGISTRATION_CONTEXT = RequestContext(ip="REGISTRO", user_agent="SISTEMA")


class SessionService:
    """
    Login, refresh, registration and logout.

    Every collaborator is handed in at construction; the service never
    reaches for a global session.
    """

    def __init__(self, db: Session, tokens: TokenService, logs: LogService):
        self.db = db
        self.tokens = tokens
        self.logs = logs

    # --- lookups -----------------------------------------------------------

    def _find_user_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def _active_profiles(self, user_id: int) -> list[UserProfile]:
        return (
            self.db.query(UserProfile)
            .join(Store, UserProfile.store_id == Store.id)
            .filter(
                UserProfile.user_id == user_id,
                UserProfile.is_active.is_(True),
                Store.is_active.is_(True)
            )
            .order_by(UserProfile.id)
            .all()
        )

    @staticmethod
    def _profile_option(profile: UserProfile) -> ProfileOption:
        return ProfileOption(
            id=profile.id,
            loja_name=profile.store.name,
            cargo=profile.job_title or DEFAULT_JOB_TITLE
        )

    @staticmethod
    def _session_user(user: User, profile: UserProfile) -> SessionUser:
        return SessionUser(
            id=user.id,
            email=user.email,
            nome=profile.name,
            role=profile.role or ROLE_EMPLOYEE,
            loja_id=profile.store_id,
            telefones=[phone.number for phone in user.phones]
        )

    # --- issuance ----------------------------------------------------------

    def _issue_session(self, user: User, profile: UserProfile, context: RequestContext) -> SessionResult:
        role = profile.role or ROLE_EMPLOYEE

        access_token = self.tokens.create_access_token(
            user.email, user.id, profile.id, profile.store_id, role
        )
        refresh_token = self.tokens.issue_refresh_token(user.id, profile.id, profile.store_id)

        self.logs.log_access(context.ip, context.user_agent, success=True, user_id=user.id)

        return SessionResult(
            access_token=access_token,
            refresh_token=refresh_token,
            user=self._session_user(user, profile)
        )

    def _issue_pre_auth(self, user: User, profiles: list[UserProfile]) -> SessionResult:
        access_token = self.tokens.create_access_token(
            user.email, user.id, None, None, ROLE_PRE_AUTH,
            expires_delta=timedelta(minutes=settings.PRE_AUTH_TOKEN_EXPIRE_MINUTES)
        )
        return SessionResult(
            access_token=access_token,
            profiles=[self._profile_option(p) for p in profiles]
        )

    # --- operations --------------------------------------------------------

    def authenticate(self, credentials: LoginRequest, context: RequestContext) -> SessionResult:
        """
        Checks email and password and opens a session.

        Unknown email, inactive account and wrong password all raise the same
        InvalidCredentials. A user with several active profiles gets a
        pre-auth token plus the profile list and must call select_store.
        """
        user = self._find_user_by_email(credentials.email)

        if user is None or not user.is_active:
            verify_password(credentials.senha, DUMMY_PASSWORD_HASH)
            logger.warning("Login failed - unknown or inactive user", extra={"email": credentials.email})
            self.logs.log_access(context.ip, context.user_agent, success=False)
            raise InvalidCredentials()

        if not verify_password(credentials.senha, user.hashed_password):
            logger.warning("Login failed - invalid password", extra={"user_id": user.id})
            self.logs.log_access(context.ip, context.user_agent, success=False, user_id=user.id)
            raise InvalidCredentials()

        profiles = self._active_profiles(user.id)

        if not profiles:
            logger.warning("Login refused - no active store profile", extra={"user_id": user.id})
            raise AuthorizationError("Usuário não possui vínculo com nenhuma loja ativa.")

        if len(profiles) > 1:
            logger.info("Login pending store selection", extra={"user_id": user.id, "profiles": len(profiles)})
            return self._issue_pre_auth(user, profiles)

        logger.debug("User authenticated", extra={"user_id": user.id})
        return self._issue_session(user, profiles[0], context)

    def select_store(self, user_id: int, profile_id: int, context: RequestContext) -> SessionResult:
        """Finishes a multi-store login for one of the user's active profiles."""
        profile = next((p for p in self._active_profiles(user_id) if p.id == profile_id), None)

        if profile is None or not profile.user.is_active:
            raise AuthorizationError("Perfil inválido ou sem permissão.")

        return self._issue_session(profile.user, profile, context)

    def list_profiles(self, user_id: int) -> list[ProfileOption]:
        return [self._profile_option(p) for p in self._active_profiles(user_id)]

    def get_session_user(self, user_id: int, profile_id: int) -> SessionUser:
        """Public projection for the profile an access token was issued for."""
        profile = self.db.query(UserProfile).filter(
            UserProfile.id == profile_id,
            UserProfile.user_id == user_id,
            UserProfile.is_active.is_(True)
        ).one_or_none()

        if profile is None or not profile.user.is_active:
            raise NotFoundError("Usuário não encontrado.")

        return self._session_user(profile.user, profile)

    def refresh_token(self, raw_token: str) -> str:
        """
        Mints a new access token for the profile the refresh token belongs to.

        The refresh token itself is left untouched; it stays usable until it
        expires or is revoked by logout.

        Raises:
            InvalidOrExpiredToken: unknown, revoked or expired token, or the
                user/profile/store behind it is no longer active
        """
        db_token = self.tokens.find_valid_refresh_token(raw_token)
        if db_token is None:
            logger.warning("Refresh refused - invalid, revoked or expired token")
            raise InvalidOrExpiredToken()

        profile = db_token.profile
        user = db_token.user
        if (not user.is_active or profile is None or not profile.is_active
                or not profile.store.is_active):
            logger.warning("Refresh refused - inactive user or profile", extra={"user_id": db_token.user_id})
            raise InvalidOrExpiredToken()

        return self.tokens.create_access_token(
            user.email, user.id, profile.id, profile.store_id, profile.role or ROLE_EMPLOYEE
        )

    def _ensure_unique(self, data: RegisterStoreOwnerRequest) -> None:
        if self._find_user_by_email(data.email) is not None:
            logger.warning("Registration attempt with existing email", extra={"email": data.email})
            raise ConflictError("Email já cadastrado.")

        if data.cnpj_cpf_loja and self.db.query(Store).filter(Store.document == data.cnpj_cpf_loja).first():
            logger.warning("Registration attempt with existing store document")
            raise ConflictError("CNPJ/CPF da loja já cadastrado.")

    @staticmethod
    def _conflict_message(exc: IntegrityError) -> str:
        if "stores" in str(exc.orig):
            return "CNPJ/CPF da loja já cadastrado."
        return "Email já cadastrado."

    def _create_owner(self, data: RegisterStoreOwnerRequest) -> User:
        user = User(
            email=data.email,
            hashed_password=get_password_hash(data.senha),
            is_active=True,
            phones=[UserPhone(number=number) for number in data.telefones]
        )
        self.db.add(user)
        self.db.flush()
        return user

    def _create_store(self, data: RegisterStoreOwnerRequest, owner: User) -> Store:
        store = Store(name=data.nome_loja, document=data.cnpj_cpf_loja, admin_user_id=owner.id)
        self.db.add(store)
        self.db.flush()
        return store

    def _create_owner_profile(self, data: RegisterStoreOwnerRequest, owner: User, store: Store) -> UserProfile:
        profile = UserProfile(
            user_id=owner.id,
            store_id=store.id,
            name=data.nome_usuario,
            document=data.cpf_usuario,
            role=ROLE_ADMIN,
            job_title=OWNER_JOB_TITLE
        )
        self.db.add(profile)
        self.db.flush()
        return profile

    def register_store_owner(self, data: RegisterStoreOwnerRequest) -> SessionResult:
        """
        Creates user, phones, store and ADMIN owner profile in one
        transaction, then logs the owner in.

        Uniqueness is checked before anything is written. If any insert
        fails, the whole registration is rolled back.
        """
        logger.info(
            "Store owner registration requested",
            extra={"email": data.email, "store_name": data.nome_loja}
        )

        self._ensure_unique(data)

        try:
            owner = self._create_owner(data)
            store = self._create_store(data, owner)
            profile = self._create_owner_profile(data, owner, store)
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration on a unique column
            self.db.rollback()
            logger.warning("Store owner registration conflict", extra={"email": data.email})
            raise ConflictError(self._conflict_message(exc))
        except Exception:
            self.db.rollback()
            logger.error("Store owner registration rolled back", extra={"email": data.email}, exc_info=True)
            raise

        self.db.refresh(profile)

        self.logs.log_system(
            REGISTRATION_ACTION,
            details=f"Nova loja: {store.name}",
            user_id=owner.id
        )

        logger.info("Store owner registered", extra={"user_id": owner.id, "store_id": store.id})

        return self._issue_session(owner, profile, REGISTRATION_CONTEXT)

    def logout(self, raw_token: str) -> None:
        """Revokes the refresh token. Unknown or already revoked tokens are fine."""
        if self.tokens.revoke_refresh_token(raw_token):
            logger.info("Refresh token revoked")
        else:
            logger.debug("Logout with unknown or already revoked token")
