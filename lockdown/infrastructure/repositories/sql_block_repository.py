"""SQL-backed block table with race-safe upsert."""
import logging
from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from lockdown.domain.block import Block
from lockdown.infrastructure.database.models import BlockedIpModel
from lockdown.infrastructure.repositories.sql_attempt_repository import as_utc

log = logging.getLogger("lockdown.db")

_ON_CONFLICT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


class SqlBlockRepository:
    """Block persistence via SQLAlchemy. Relies on the unique ip_address index."""

    def __init__(self, session_factory):
        self._sf = session_factory

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def upsert(self, block: Block) -> None:
        """Insert or refresh the row for ``block.ip_address``.

        Two writers can both see no row and both try to insert. The insert
        reports whether it won; the loser updates the winner's row instead.
        A row deleted between the read and the update is inserted again.
        """
        with self._sf() as session:
            row = (
                session.query(BlockedIpModel)
                .filter(BlockedIpModel.ip_address == block.ip_address)
                .first()
            )
            if row is None:
                if self._insert_if_absent(session, block):
                    session.commit()
                    return
                log.info("Concurrent block insert for %s, updating instead", block.ip_address)
            if self._update(session, block) == 0:
                log.info("Block row for %s vanished before update, inserting", block.ip_address)
                if not self._insert_if_absent(session, block):
                    self._update(session, block)
            session.commit()

    def _update(self, session, block: Block) -> int:
        return (
            session.query(BlockedIpModel)
            .filter(BlockedIpModel.ip_address == block.ip_address)
            .update(self._update_values(block), synchronize_session=False)
        )

    def _insert_if_absent(self, session, block: Block) -> bool:
        """Insert keyed on ip_address; False when another row already holds it."""
        now = datetime.now(timezone.utc)
        values = {
            "ip_address": block.ip_address,
            "created_at": as_utc(block.created_at) or now,
            **self._update_values(block),
        }
        dialect = session.get_bind().dialect.name
        insert = _ON_CONFLICT_INSERTS.get(dialect)
        if insert is not None:
            stmt = insert(BlockedIpModel).values(**values).on_conflict_do_nothing(
                index_elements=["ip_address"]
            )
            return session.execute(stmt).rowcount == 1

        # Dialects without ON CONFLICT: let the unique index arbitrate.
        try:
            with session.begin_nested():
                session.add(BlockedIpModel(**values))
            return True
        except IntegrityError:
            return False

    @staticmethod
    def _update_values(block: Block) -> dict:
        return {
            "attempt_count": block.attempt_count,
            "reason": block.reason,
            "blocked_until": as_utc(block.blocked_until),
            "is_manual": block.is_manual,
            "updated_at": as_utc(block.updated_at) or datetime.now(timezone.utc),
        }

    def delete(self, ip: str) -> bool:
        with self._sf() as session:
            deleted = (
                session.query(BlockedIpModel)
                .filter(BlockedIpModel.ip_address == ip)
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted > 0

    def delete_by_id(self, block_id: int) -> bool:
        with self._sf() as session:
            row = session.get(BlockedIpModel, block_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def delete_expired(self, as_of: datetime) -> int:
        with self._sf() as session:
            deleted = (
                session.query(BlockedIpModel)
                .filter(BlockedIpModel.blocked_until < as_utc(as_of))
                .delete(synchronize_session=False)
            )
            session.commit()
            return deleted

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, ip: str) -> Block | None:
        with self._sf() as session:
            row = (
                session.query(BlockedIpModel)
                .filter(BlockedIpModel.ip_address == ip)
                .first()
            )
            return self._to_domain(row) if row else None

    def list_active(self, include_expired: bool, now: datetime) -> list:
        with self._sf() as session:
            query = session.query(BlockedIpModel)
            if not include_expired:
                query = query.filter(BlockedIpModel.blocked_until > as_utc(now))
            rows = query.order_by(
                BlockedIpModel.created_at.desc(), BlockedIpModel.id.desc()
            ).all()
            return [self._to_domain(r) for r in rows]

    @staticmethod
    def _to_domain(row: BlockedIpModel) -> Block:
        return Block(
            ip_address=row.ip_address,
            blocked_until=as_utc(row.blocked_until),
            attempt_count=row.attempt_count,
            reason=row.reason or "",
            is_manual=bool(row.is_manual),
            block_id=row.id,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )
