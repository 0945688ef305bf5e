"""Session-local list of saved calculations (newest first)."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional, Protocol, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict

from .models import InputSet


class RecordProvider(Protocol):
    """Source of record ids and timestamps."""

    def new_id(self) -> str:
        ...

    def now(self) -> datetime:
        ...


class SystemProvider:
    """uuid4 ids and local wall-clock time."""

    def new_id(self) -> str:
        return str(uuid.uuid4())

    def now(self) -> datetime:
        return datetime.now()


DEFAULT_PROVIDER: RecordProvider = SystemProvider()


class CalculationRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    timestamp: datetime
    inputs: InputSet
    result: float


def make_record(inputs: InputSet, result: float, provider: Optional[RecordProvider] = None) -> CalculationRecord:
    p = provider or DEFAULT_PROVIDER
    return CalculationRecord(id=p.new_id(), timestamp=p.now(), inputs=inputs, result=float(result))


@dataclass(frozen=True)
class SessionStore:
    records: Tuple[CalculationRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[CalculationRecord]:
        return iter(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)

    def get(self, record_id: str) -> Optional[CalculationRecord]:
        for r in self.records:
            if r.id == record_id:
                return r
        return None

    def ids(self) -> Tuple[str, ...]:
        return tuple(r.id for r in self.records)


def append(store: SessionStore, record: CalculationRecord) -> SessionStore:
    """Prepend `record`; the store stays newest first."""
    logger.info(f"Saved calculation {record.id}: Vuo = {record.result:.2f} N")
    return SessionStore(records=(record,) + store.records)


def remove(store: SessionStore, record_id: str) -> SessionStore:
    """Drop the record with `record_id`; unknown ids leave the store unchanged."""
    kept = tuple(r for r in store.records if r.id != record_id)
    if len(kept) == len(store.records):
        logger.debug(f"Delete ignored, no record with id {record_id}")
        return store
    logger.info(f"Deleted calculation {record_id}")
    return SessionStore(records=kept)


def save(
    store: SessionStore,
    inputs: InputSet,
    result: float,
    provider: Optional[RecordProvider] = None,
) -> Tuple[SessionStore, CalculationRecord]:
    """Create a fresh record for (inputs, result) and prepend it."""
    record = make_record(inputs, result, provider)
    return append(store, record), record
