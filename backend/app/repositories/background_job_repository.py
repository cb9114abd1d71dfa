"""Repository for persisted background jobs (the event outbox)."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, List, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import ulid

from ..core.exceptions import RepositoryException
from ..models.background_job import BackgroundJob

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackgroundJobRepository:
    """Data access helpers for background_jobs table."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logger

    def enqueue(
        self,
        *,
        type: str,
        payload: dict[str, Any],
        available_at: datetime | None = None,
    ) -> str:
        """Persist a new job ready for processing. Flushes, never commits."""

        try:
            job_id = str(ulid.ULID())
            job = BackgroundJob(
                id=job_id,
                type=type,
                payload=payload,
                status="queued",
                attempts=0,
                available_at=available_at or _utcnow(),
            )
            self.db.add(job)
            self.db.flush()
            return job_id
        except SQLAlchemyError as exc:
            self.logger.error("Failed to enqueue job %s: %s", type, str(exc))
            raise RepositoryException("Failed to enqueue background job") from exc

    def list_by_type(self, type: str, *, limit: int = 100) -> List[BackgroundJob]:
        """Return jobs of one type, oldest first."""

        try:
            jobs = (
                self.db.query(BackgroundJob)
                .filter(BackgroundJob.type == type)
                .order_by(BackgroundJob.created_at.asc(), BackgroundJob.id.asc())
                .limit(limit)
                .all()
            )
            return cast(List[BackgroundJob], jobs)
        except SQLAlchemyError as exc:
            self.logger.error("Failed to list jobs of type %s: %s", type, str(exc))
            raise RepositoryException("Failed to list background jobs") from exc
