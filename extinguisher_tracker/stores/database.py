"""Relational backend built on the SQLAlchemy ORM."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.errors import DuplicateBarcodeError, StorageFailure, UnknownExtinguisherError
from ..db.session import build_engine, build_session_factory, create_schema
from ..models.extinguisher import FireExtinguisherRow
from ..models.maintenance import MaintenanceLogRow
from ..schemas import ExtinguisherCreate, FireExtinguisher, MaintenanceLog, MaintenanceLogEntry
from .base import Storage, new_id, utcnow

logger = logging.getLogger(__name__)


class DatabaseStorage(Storage):
    name = "database"

    def __init__(self, session_factory: sessionmaker, engine: Engine | None = None) -> None:
        self.session_factory = session_factory
        self.engine = engine

    @classmethod
    def from_url(cls, url: str) -> "DatabaseStorage":
        engine = build_engine(url)
        create_schema(engine)
        return cls(build_session_factory(engine), engine=engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageFailure() from exc
        finally:
            db.close()

    def get(self, barcode: str) -> FireExtinguisher | None:
        with self._session() as db:
            row = db.execute(
                select(FireExtinguisherRow).where(FireExtinguisherRow.barcode == barcode)
            ).scalars().first()
            return FireExtinguisher.model_validate(row) if row else None

    def get_by_id(self, extinguisher_id: str) -> FireExtinguisher | None:
        with self._session() as db:
            row = db.get(FireExtinguisherRow, extinguisher_id)
            return FireExtinguisher.model_validate(row) if row else None

    def create(self, data: ExtinguisherCreate) -> FireExtinguisher:
        row = FireExtinguisherRow(id=new_id(), created_at=utcnow(), **data.model_dump())
        with self._session() as db:
            db.add(row)
            try:
                db.commit()
            except IntegrityError as exc:
                # The unique index on barcode makes check-and-insert atomic.
                db.rollback()
                raise DuplicateBarcodeError() from exc
            record = FireExtinguisher.model_validate(row)
        logger.info("extinguisher.created", extra={"extra_data": {"barcode": record.barcode, "backend": self.name}})
        return record

    def list(self) -> list[FireExtinguisher]:
        with self._session() as db:
            rows = db.execute(select(FireExtinguisherRow).order_by(FireExtinguisherRow.created_at)).scalars().all()
            return [FireExtinguisher.model_validate(row) for row in rows]

    def append(self, extinguisher_id: str, entry: MaintenanceLogEntry) -> MaintenanceLog:
        with self._session() as db:
            if db.get(FireExtinguisherRow, extinguisher_id) is None:
                raise UnknownExtinguisherError()
            next_seq = db.scalar(select(func.coalesce(func.max(MaintenanceLogRow.seq), 0))) + 1
            row = MaintenanceLogRow(
                id=new_id(),
                seq=next_seq,
                extinguisher_id=extinguisher_id,
                date_work_done=entry.date_work_done,
                remarks=entry.remarks,
                user=entry.user,
                created_at=utcnow(),
            )
            db.add(row)
            db.commit()
            log = MaintenanceLog.model_validate(row)
        logger.info(
            "maintenance_log.appended",
            extra={"extra_data": {"extinguisher_id": extinguisher_id, "backend": self.name}},
        )
        return log

    def list_for(self, extinguisher_id: str) -> list[MaintenanceLog]:
        stmt = (
            select(MaintenanceLogRow)
            .where(MaintenanceLogRow.extinguisher_id == extinguisher_id)
            .order_by(
                MaintenanceLogRow.date_work_done.desc(),
                MaintenanceLogRow.created_at.desc(),
                MaintenanceLogRow.seq.desc(),
            )
        )
        with self._session() as db:
            return [MaintenanceLog.model_validate(row) for row in db.execute(stmt).scalars().all()]

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
