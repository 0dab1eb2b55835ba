"""SQL-backed attempt log (any SQLAlchemy dialect)."""
from datetime import datetime, timezone

from sqlalchemy import func

from lockdown.domain.login_attempt import LoginAttempt
from lockdown.infrastructure.database.models import LoginAttemptModel


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise to an aware UTC datetime (SQLite returns naive values)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAttemptRepository:
    """Attempt persistence via SQLAlchemy."""

    def __init__(self, session_factory):
        self._sf = session_factory

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert(self, attempt: LoginAttempt) -> LoginAttempt:
        with self._sf() as session:
            row = LoginAttemptModel(
                ip_address=attempt.ip_address,
                username=attempt.username,
                user_agent=attempt.user_agent,
                attempted_at=as_utc(attempt.attempted_at),
            )
            session.add(row)
            session.commit()
            return attempt.with_id(row.id)

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._sf() as session:
            deleted = (
                session.query(LoginAttemptModel)
                .filter(LoginAttemptModel.attempted_at < as_utc(cutoff))
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def count_since(self, ip: str, since: datetime) -> int:
        with self._sf() as session:
            return (
                session.query(func.count(LoginAttemptModel.id))
                .filter(
                    LoginAttemptModel.ip_address == ip,
                    LoginAttemptModel.attempted_at >= as_utc(since),
                )
                .scalar()
            ) or 0

    def recent_for(self, ip: str, limit: int) -> list:
        with self._sf() as session:
            rows = (
                session.query(LoginAttemptModel)
                .filter(LoginAttemptModel.ip_address == ip)
                .order_by(LoginAttemptModel.attempted_at.desc(), LoginAttemptModel.id.desc())
                .limit(max(limit, 0))
                .all()
            )
            return [self._to_domain(r) for r in rows]

    @staticmethod
    def _to_domain(row: LoginAttemptModel) -> LoginAttempt:
        return LoginAttempt(
            ip_address=row.ip_address,
            attempted_at=as_utc(row.attempted_at),
            username=row.username,
            user_agent=row.user_agent,
            attempt_id=row.id,
        )
