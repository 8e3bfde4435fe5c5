"""Single configured handle to the database, object storage, auth and change feed.

Rows travel as plain dicts so callers can keep in-memory copies without holding
ORM state. Each verb runs in its own transaction.
"""

from collections.abc import Iterable
from types import ModuleType
from typing import Any

import structlog
from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from talentdesk.core.errors import BackendMutationError, BackendReadError, ValidationFailed
from talentdesk.core.security import verify_password
from talentdesk.models import (
    Candidate,
    Client,
    Comment,
    Commission,
    CompanyDocument,
    Interview,
    NotificationOutbox,
    OutreachActivity,
    PipelineEntry,
    Position,
    Recruiter,
)
from talentdesk.services import storage as default_storage
from talentdesk.services.realtime import SubscriptionManager

logger = structlog.get_logger()

TABLES = {
    "clients": Client,
    "positions": Position,
    "candidates": Candidate,
    "recruiters": Recruiter,
    "pipeline": PipelineEntry,
    "interviews": Interview,
    "comments": Comment,
    "recruiter_outreach": OutreachActivity,
    "commissions": Commission,
    "company_documents": CompanyDocument,
    "notification_outbox": NotificationOutbox,
}

# Never handed back to callers.
HIDDEN_COLUMNS = {"recruiters": {"password_hash"}}


def _model(table: str):
    model = TABLES.get(table)
    if model is None:
        raise ValidationFailed(f"Unknown table '{table}'")
    return model


def _column(model, table: str, name: str):
    column = model.__table__.columns.get(name)
    if column is None:
        raise ValidationFailed(f"Unknown column '{name}' on '{table}'")
    return getattr(model, name)


def row_to_dict(table: str, obj) -> dict[str, Any]:
    hidden = HIDDEN_COLUMNS.get(table, set())
    return {
        c.key: getattr(obj, c.key)
        for c in obj.__mapper__.column_attrs
        if c.key not in hidden
    }


class Backend:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        realtime: SubscriptionManager | None = None,
        storage: ModuleType | Any = None,
    ):
        self.session_factory = session_factory
        self.realtime = realtime or SubscriptionManager()
        self.storage = storage or default_storage

    def _query(self, table, eq, in_, gte, lte, ieq=None):
        model = _model(table)
        query = select(model)
        for name, value in (eq or {}).items():
            column = _column(model, table, name)
            query = query.where(column.is_(None) if value is None else column == value)
        for name, values in (in_ or {}).items():
            query = query.where(_column(model, table, name).in_(list(values)))
        for name, value in (gte or {}).items():
            query = query.where(_column(model, table, name) >= value)
        for name, value in (lte or {}).items():
            query = query.where(_column(model, table, name) <= value)
        for name, value in (ieq or {}).items():
            query = query.where(func.lower(_column(model, table, name)) == str(value).lower())
        return model, query

    async def select(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, Iterable] | None = None,
        gte: dict[str, Any] | None = None,
        lte: dict[str, Any] | None = None,
        ieq: dict[str, str] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        model, query = self._query(table, eq, in_, gte, lte, ieq)
        if order_by:
            column = _column(model, table, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            query = query.limit(limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [row_to_dict(table, obj) for obj in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("backend_read_failed", table=table, error=str(e))
            raise BackendReadError(f"Could not load {table.replace('_', ' ')}") from e

    async def select_one(self, table: str, **eq) -> dict[str, Any] | None:
        rows = await self.select(table, eq=eq, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, rows: dict | list[dict]) -> list[dict[str, Any]]:
        model = _model(table)
        if isinstance(rows, dict):
            rows = [rows]
        for row in rows:
            for name in row:
                _column(model, table, name)

        try:
            async with self.session_factory() as session:
                objs = [model(**row) for row in rows]
                session.add_all(objs)
                await session.commit()
                inserted = [row_to_dict(table, obj) for obj in objs]
        except IntegrityError as e:
            logger.warning("backend_insert_conflict", table=table, error=str(e.orig))
            raise BackendMutationError(
                f"Could not save {table.replace('_', ' ')}", details={"constraint": "unique"}
            ) from e
        except SQLAlchemyError as e:
            logger.error("backend_insert_failed", table=table, error=str(e))
            raise BackendMutationError(f"Could not save {table.replace('_', ' ')}") from e

        logger.info("backend_inserted", table=table, count=len(inserted))
        for record in inserted:
            await self.realtime.publish(table, "INSERT", record)
        return inserted

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, Iterable] | None = None,
    ) -> list[dict[str, Any]]:
        if not eq and not in_:
            raise ValidationFailed("Refusing to update without a filter")
        model, query = self._query(table, eq, in_, None, None)
        for name in values:
            _column(model, table, name)

        try:
            async with self.session_factory() as session:
                objs = (await session.execute(query)).scalars().all()
                for obj in objs:
                    for name, value in values.items():
                        setattr(obj, name, value)
                await session.commit()
                updated = [row_to_dict(table, obj) for obj in objs]
        except IntegrityError as e:
            logger.warning("backend_update_conflict", table=table, error=str(e.orig))
            raise BackendMutationError(
                f"Could not update {table.replace('_', ' ')}", details={"constraint": "unique"}
            ) from e
        except SQLAlchemyError as e:
            logger.error("backend_update_failed", table=table, error=str(e))
            raise BackendMutationError(f"Could not update {table.replace('_', ' ')}") from e

        logger.info("backend_updated", table=table, count=len(updated))
        return updated

    async def delete(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, Iterable] | None = None,
    ) -> int:
        if not eq and not in_:
            raise ValidationFailed("Refusing to delete without a filter")
        model = _model(table)
        statement = sa_delete(model)
        for name, value in (eq or {}).items():
            statement = statement.where(_column(model, table, name) == value)
        for name, values in (in_ or {}).items():
            statement = statement.where(_column(model, table, name).in_(list(values)))

        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                count = result.rowcount
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("backend_delete_failed", table=table, error=str(e))
            raise BackendMutationError(f"Could not delete {table.replace('_', ' ')}") from e

        logger.info("backend_deleted", table=table, count=count)
        return count

    # --- Auth ---

    async def authenticate(self, email: str, password: str) -> dict[str, Any] | None:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Recruiter).where(func.lower(Recruiter.email) == email.strip().lower())
                )
                recruiter = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("backend_auth_failed", error=str(e))
            raise BackendReadError("Could not reach the sign-in service") from e

        if recruiter is None or not recruiter.password_hash:
            return None
        if not verify_password(password, recruiter.password_hash):
            return None
        return row_to_dict("recruiters", recruiter)

    # --- Object storage ---

    async def upload(self, bucket: str, key: str, content: bytes, content_type: str | None = None) -> str:
        try:
            url = self.storage.upload_bytes(bucket, key, content, content_type)
        except Exception as e:
            logger.error("storage_upload_failed", bucket=bucket, key=key, error=str(e))
            raise BackendMutationError("Could not upload file") from e
        logger.info("storage_uploaded", bucket=bucket, key=key, size=len(content))
        return url

    async def download(self, bucket: str, key: str) -> bytes:
        try:
            return self.storage.download_file(bucket, key)
        except Exception as e:
            logger.error("storage_download_failed", bucket=bucket, key=key, error=str(e))
            raise BackendReadError("Could not download file") from e

    async def remove(self, bucket: str, keys: list[str]) -> None:
        try:
            self.storage.delete_files(bucket, keys)
        except Exception as e:
            logger.error("storage_delete_failed", bucket=bucket, keys=keys, error=str(e))
            raise BackendMutationError("Could not delete file") from e

    def public_url(self, bucket: str, key: str) -> str:
        return self.storage.public_url(bucket, key)

    def key_from_public_url(self, bucket: str, url: str) -> str | None:
        return self.storage.key_from_public_url(bucket, url)
