"""Merge freshly fetched records into an owner's stored collection without duplicates."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from catalog_sync.core.enums import ReconcileStage
from catalog_sync.exceptions.base import CatalogValidationError
from catalog_sync.exceptions.store import StoreError
from catalog_sync.ingestion.logger import logger
from catalog_sync.ingestion.normalization import published_sort_key
from catalog_sync.schemas.catalog import CanonicalRecord
from catalog_sync.schemas.results import ReconcileResult
from catalog_sync.utils import as_utc, title_key

T = TypeVar("T")


class CatalogStore(Protocol):
    def select_by_owner(self, session: Session, owner_scope: str) -> Iterable[CanonicalRecord]:
        ...

    def insert_many(
        self,
        session: Session,
        owner_scope: str,
        records: Sequence[CanonicalRecord],
    ) -> Sequence[Any]:
        ...


@dataclass
class ExistingIndex:
    """Dedup keys of everything an owner already has."""

    media_urls: set[str] = field(default_factory=set)
    title_keys: set[str] = field(default_factory=set)

    @classmethod
    def from_records(cls, records: Iterable[CanonicalRecord]) -> "ExistingIndex":
        index = cls()
        for record in records:
            index.add(record)
        return index

    def add(self, record: CanonicalRecord) -> None:
        if record.media_url:
            self.media_urls.add(record.media_url)
        key = title_key(record.title)
        if key:
            self.title_keys.add(key)

    def contains(self, record: CanonicalRecord) -> bool:
        # Title is only consulted when there is no media url to compare
        if record.media_url:
            return record.media_url in self.media_urls
        key = title_key(record.title)
        return key is not None and key in self.title_keys


def require_owner_scope(owner_scope: str | None) -> str:
    if not owner_scope or not str(owner_scope).strip():
        raise CatalogValidationError("owner scope is required")
    return owner_scope


def log_stage(owner_scope: str, stage: ReconcileStage) -> None:
    logger.debug(f"Reconcile[{owner_scope}] -> {stage.value}")


def reconcile(
    *,
    session: Session,
    owner_scope: str,
    candidates: Iterable[CanonicalRecord],
    store: CatalogStore,
) -> ReconcileResult:
    """
    Insert the candidates the owner does not have yet.

    Reads the owner's existing records once, filters the candidates against
    them (and against earlier candidates of the same call), then writes the
    survivors with one bulk insert and commits.

    Parameters:
        session (Session): The database session; committed on success.
        owner_scope (str): The owner whose collection is reconciled.
        candidates (Iterable[CanonicalRecord]): Normalized records, in order.
        store (CatalogStore): Where the owner's records live.
    Returns:
        ReconcileResult: accepted, rejected (duplicates) and ineligible records.
    Raises:
        CatalogValidationError: If owner_scope is empty.
        StoreError: If reading or writing the store fails; the session is
            rolled back.
    """
    require_owner_scope(owner_scope)

    result = ReconcileResult()
    eligible: list[CanonicalRecord] = []
    for candidate in candidates:
        if candidate.is_eligible:
            eligible.append(candidate)
        else:
            result.ineligible.append(candidate)

    try:
        log_stage(owner_scope, ReconcileStage.INDEX_BUILD)
        index = ExistingIndex.from_records(store.select_by_owner(session, owner_scope))

        log_stage(owner_scope, ReconcileStage.FILTER)
        for candidate in eligible:
            if index.contains(candidate):
                result.rejected.append(candidate)
            else:
                index.add(candidate)
                result.accepted.append(candidate)

        if result.accepted:
            log_stage(owner_scope, ReconcileStage.INSERT)
            result.inserted_rows = list(store.insert_many(session, owner_scope, result.accepted))
            session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Reconcile for owner {owner_scope} failed: {e}")
        raise StoreError("reconcile catalog records", str(e)) from e

    log_stage(owner_scope, ReconcileStage.DONE)
    logger.info(
        f"Reconciled {len(eligible) + len(result.ineligible)} candidates for {owner_scope}: "
        f"{len(result.accepted)} accepted, {len(result.rejected)} duplicate, "
        f"{len(result.ineligible)} ineligible"
    )
    return result


def sort_oldest_first(items: Iterable[T]) -> list[T]:
    """Chronological order; items without a usable date go last, in input order."""
    return sorted(items, key=published_sort_key)


_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def sort_newest_first(rows: Iterable[T], attr: str) -> list[T]:
    """Descending by a server-assigned timestamp attribute; rows without one go last."""

    def key(row: T) -> tuple[bool, datetime]:
        value = getattr(row, attr, None)
        if value is None:
            return (False, _OLDEST)
        return (True, as_utc(value))

    return sorted(rows, key=key, reverse=True)


def prepend_id(ids: Sequence[str] | None, new_id: str) -> list[str]:
    """Newest-first id list with `new_id` at the front and no duplicates."""
    return [new_id, *(i for i in (ids or []) if i != new_id)]
