from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from collector_app.config import settings
from collector_app.exceptions import StorageConstraintViolation, StorageUnavailable
from collector_app.logging_config import get_logger
from collector_app.models.visitor import Visitor
from collector_app.schemas.client_info import ClientInfo, SourceType

logger = get_logger("store")

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
_INSERT_CONSTRUCTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@dataclass(frozen=True)
class UpsertResult:
    visitor_number: int
    was_new_visitor: bool
    visit_count: int


class VisitorStore:
    """
    Visitor persistence keyed by (ip_address, source_type).

    A repeat hit bumps visit_count and last_visit and leaves the first-seen
    fingerprint alone. A new identity gets visitor_number = max + 1.
    """

    def __init__(self, db: Session, max_retries: Optional[int] = None):
        """
        Args:
            db: Database session
            max_retries: Extra attempts when two new visitors race for the
                same visitor_number (defaults to settings)
        """
        self.db = db
        self.max_retries = settings.upsert_max_retries if max_retries is None else max_retries

    def upsert(self, client_info: ClientInfo) -> UpsertResult:
        """
        Record one hit atomically.

        One INSERT ... ON CONFLICT (ip_address, source_type) DO UPDATE per
        attempt, so concurrent hits from the same visitor cannot lose an
        increment. The visitor_number allocation is a subquery in the same
        statement; if another new visitor commits the same number first the
        unique constraint rejects ours and the statement is retried.

        Raises:
            StorageConstraintViolation: visitor_number kept colliding
            StorageUnavailable: any other database failure
        """
        row = client_info.to_row()

        for attempt in range(1, self.max_retries + 2):
            statement = self._upsert_statement(row, datetime.now(timezone.utc))
            try:
                result = self.db.execute(statement).one()
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(
                    "Visitor number collision for %s (attempt %d): %s",
                    client_info.source_type.value, attempt, e.orig,
                )
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StorageUnavailable(f"Visitor upsert failed: {e}") from e

            return UpsertResult(
                visitor_number=result.visitor_number,
                was_new_visitor=result.visit_count == 1,
                visit_count=result.visit_count,
            )

        raise StorageConstraintViolation(
            f"Could not allocate a visitor number after {self.max_retries + 1} attempts"
        )

    def _upsert_statement(self, row: dict, now: datetime):
        dialect = self.db.get_bind().dialect.name
        insert = _INSERT_CONSTRUCTS.get(dialect)
        if insert is None:
            raise StorageUnavailable(f"Unsupported database dialect for upsert: {dialect}")

        existing = Visitor.__table__.alias("existing")
        next_number = select(
            func.coalesce(func.max(existing.c.visitor_number), 0) + 1
        ).scalar_subquery()

        statement = insert(Visitor).values(
            **row,
            visitor_number=next_number,
            visit_count=1,
            last_visit=now,
        )
        statement = statement.on_conflict_do_update(
            index_elements=[Visitor.ip_address, Visitor.source_type],
            set_={
                "visit_count": Visitor.visit_count + 1,
                "last_visit": statement.excluded.last_visit,
            },
        )
        return statement.returning(Visitor.visitor_number, Visitor.visit_count)

    @staticmethod
    def page_bounds(limit: int, offset: int) -> Tuple[int, int]:
        """Effective (limit, offset): limit within [0, max_list_limit], offset >= 0"""
        return max(0, min(settings.max_list_limit, limit)), max(0, offset)

    def list(self, limit: int = 50, offset: int = 0) -> List[Visitor]:
        """Visitors ordered by most recent visit first"""
        limit, offset = self.page_bounds(limit, offset)
        if limit == 0:
            return []
        try:
            return (
                self.db.query(Visitor)
                .order_by(Visitor.last_visit.desc(), Visitor.visitor_number.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailable(f"Visitor listing failed: {e}") from e

    def get(self, ip_address: str, source_type: SourceType) -> Optional[Visitor]:
        """Look up a visitor by identity key"""
        try:
            return self.db.query(Visitor).filter(
                Visitor.ip_address == ip_address,
                Visitor.source_type == source_type.value,
            ).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailable(f"Visitor lookup failed: {e}") from e
