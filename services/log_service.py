import math
from datetime import datetime, timedelta, timezone
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, Query, contains_eager
from models.logs import AccessLog, SystemLog
from models.users import User
from services.token_service import as_utc
from utils.logger import get_logger

logger = get_logger(__name__)

# Brasília time; Brazil has had no DST since 2019
BRT = timezone(timedelta(hours=-3), "BRT")
DISPLAY_DATE_FORMAT = "%d/%m/%Y, %H:%M:%S"


def format_br_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    return as_utc(value).astimezone(BRT).strftime(DISPLAY_DATE_FORMAT)


def _user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "email": user.email}


class LogService:
    """
    Access and system (audit) logs.

    Writes are best-effort: a failure is reported through the application
    logger and swallowed, so it never undoes or fails the caller's work.
    Callers commit their own changes before logging.
    """

    def __init__(self, db: Session):
        self.db = db

    def _persist(self, entry) -> None:
        self.db.add(entry)
        self.db.commit()

    def _write(self, entry, kind: str) -> bool:
        try:
            self._persist(entry)
            return True
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to write {kind} log entry")
            return False

    def log_access(self, ip: str, user_agent: str, success: bool, user_id: int | None = None) -> bool:
        return self._write(
            AccessLog(user_id=user_id, ip=(ip or "")[:45], user_agent=(user_agent or "")[:512], success=success),
            "access"
        )

    def log_system(self, action: str, details: str | None = None, user_id: int | None = None) -> bool:
        return self._write(
            SystemLog(user_id=user_id, action=action, details=details),
            "system"
        )

    @staticmethod
    def _paginate(query: Query, page: int, per_page: int, serialize) -> dict:
        total = query.order_by(None).count()
        rows = query.offset((page - 1) * per_page).limit(per_page).all()

        return {
            "data": [serialize(row) for row in rows],
            "total": total,
            "page": page,
            "perPage": per_page,
            "totalPages": math.ceil(total / per_page) if per_page else 0,
        }

    @staticmethod
    def _serialize_access(log: AccessLog) -> dict:
        return {
            "id": log.id,
            "data": format_br_datetime(log.created_at),
            "ip": log.ip,
            "user_agent": log.user_agent,
            "sucesso": log.success,
            "usuario": _user_summary(log.user),
        }

    @staticmethod
    def _serialize_system(log: SystemLog) -> dict:
        return {
            "id": log.id,
            "data": format_br_datetime(log.created_at),
            "acao": log.action,
            "detalhes": log.details,
            "usuario": _user_summary(log.user),
        }

    def _access_query(self) -> Query:
        return (
            self.db.query(AccessLog)
            .outerjoin(User, AccessLog.user_id == User.id)
            .options(contains_eager(AccessLog.user))
            .order_by(AccessLog.created_at.desc(), AccessLog.id.desc())
        )

    def _system_query(self) -> Query:
        return (
            self.db.query(SystemLog)
            .outerjoin(User, SystemLog.user_id == User.id)
            .options(contains_eager(SystemLog.user))
            .order_by(SystemLog.created_at.desc(), SystemLog.id.desc())
        )

    def get_access_logs(self, page: int = 1, per_page: int = 10) -> dict:
        return self._paginate(self._access_query(), page, per_page, self._serialize_access)

    def search_access_logs(self, term: str, page: int = 1, per_page: int = 10) -> dict:
        """Matches the IP or the user's email, case-insensitive and literally (no wildcards)."""
        if not term or not term.strip():
            return self.get_access_logs(page, per_page)

        term = term.strip()
        query = self._access_query().filter(or_(
            AccessLog.ip.icontains(term, autoescape=True),
            User.email.icontains(term, autoescape=True)
        ))
        return self._paginate(query, page, per_page, self._serialize_access)

    def get_system_logs(self, page: int = 1, per_page: int = 10) -> dict:
        return self._paginate(self._system_query(), page, per_page, self._serialize_system)

    def search_system_logs(self, term: str, page: int = 1, per_page: int = 10) -> dict:
        """Matches action, details or the user's email, case-insensitive."""
        if not term or not term.strip():
            return self.get_system_logs(page, per_page)

        term = term.strip()
        query = self._system_query().filter(or_(
            SystemLog.action.icontains(term, autoescape=True),
            SystemLog.details.icontains(term, autoescape=True),
            User.email.icontains(term, autoescape=True)
        ))
        return self._paginate(query, page, per_page, self._serialize_system)
