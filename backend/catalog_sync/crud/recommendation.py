from collections.abc import Sequence

from sqlalchemy.orm import load_only
from sqlmodel import Session, col, select

from catalog_sync.models.recommendation import (
    PreviouslyRecommended,
    PreviouslyRecommendedCreate,
)
from catalog_sync.schemas.catalog import CanonicalRecord
from catalog_sync.utils import now_utc


def get_by_owner(
    *,
    session: Session,
    user_id: str,
    fields: Sequence[str] | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[PreviouslyRecommended]:
    """
    Tracks previously recommended to a user, newest first.

    Parameters:
        session (Session): The database session.
        user_id (str): The owner scope.
        fields (Sequence[str] | None): Restrict the loaded columns, e.g. to the
            dedup keys only.
        limit (int | None): Page size, or every row when None.
        offset (int): Rows to skip.
    Returns:
        list[PreviouslyRecommended]: The stored rows.
    """
    stmt = select(PreviouslyRecommended).where(PreviouslyRecommended.user_id == user_id)
    if fields:
        stmt = stmt.options(
            load_only(*(getattr(PreviouslyRecommended, name) for name in fields))
        )
    stmt = (
        stmt.order_by(
            col(PreviouslyRecommended.created_at).desc(),
            col(PreviouslyRecommended.id).desc(),
        )
        .limit(limit)
        .offset(offset)
    )
    return list(session.exec(stmt).all())


def to_create(user_id: str, record: CanonicalRecord) -> PreviouslyRecommendedCreate:
    return PreviouslyRecommendedCreate(
        user_id=user_id,
        copyright_text=record.copyright_text,
        duration=record.duration_seconds,
        image=record.image_url,
        label=record.label,
        media_url=record.media_url,
        music=record.secondary_title,
        song=record.title,
        year=record.year,
    )


def to_record(row: PreviouslyRecommended) -> CanonicalRecord:
    return CanonicalRecord(
        title=row.song,
        secondary_title=row.music,
        media_url=row.media_url,
        image_url=row.image,
        duration_seconds=row.duration,
        label=row.label,
        copyright_text=row.copyright_text,
        year=row.year,
    )


def insert_many(
    *,
    session: Session,
    user_id: str,
    records: Sequence[CanonicalRecord],
) -> list[PreviouslyRecommended]:
    """Add all records in one flush; every row shares the same server timestamp."""
    now = now_utc()
    rows = [
        PreviouslyRecommended(**to_create(user_id, record).model_dump(), created_at=now)
        for record in records
    ]
    session.add_all(rows)
    session.flush()
    return rows


class PreviouslyRecommendedStore:
    """Recommendation history exposed through the reconcile store interface."""

    dedup_fields = ("media_url", "song")

    def select_by_owner(self, session: Session, owner_scope: str) -> list[CanonicalRecord]:
        rows = get_by_owner(session=session, user_id=owner_scope, fields=self.dedup_fields)
        # Only the dedup keys are loaded
        return [CanonicalRecord(title=row.song, media_url=row.media_url) for row in rows]

    def insert_many(
        self,
        session: Session,
        owner_scope: str,
        records: Sequence[CanonicalRecord],
    ) -> list[PreviouslyRecommended]:
        return insert_many(session=session, user_id=owner_scope, records=records)
