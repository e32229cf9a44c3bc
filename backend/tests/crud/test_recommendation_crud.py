from sqlmodel import Session

from catalog_sync.crud import recommendation as recommendation_crud


def test_insert_many_and_get_by_owner(
    *,
    db_transaction: Session,
    canonical_record_factory,
):
    records = canonical_record_factory.build_batch(3)

    rows = recommendation_crud.insert_many(
        session=db_transaction,
        user_id="user-1",
        records=records,
    )
    stored = recommendation_crud.get_by_owner(session=db_transaction, user_id="user-1")

    assert len(rows) == 3
    assert {r.media_url for r in stored} == {r.media_url for r in records}
    assert {r.song for r in stored} == {r.title for r in records}
    assert len({r.created_at for r in rows}) == 1
    assert recommendation_crud.get_by_owner(session=db_transaction, user_id="other") == []


def test_get_by_owner_pages_newest_first(
    *,
    db_transaction: Session,
    canonical_record_factory,
):
    rows = recommendation_crud.insert_many(
        session=db_transaction,
        user_id="user-1",
        records=canonical_record_factory.build_batch(3),
    )
    newest_first = sorted((r.id for r in rows), reverse=True)

    first = recommendation_crud.get_by_owner(
        session=db_transaction, user_id="user-1", limit=2, offset=0
    )
    rest = recommendation_crud.get_by_owner(
        session=db_transaction, user_id="user-1", limit=2, offset=2
    )

    assert [r.id for r in first] == newest_first[:2]
    assert [r.id for r in rest] == newest_first[2:]


def test_row_and_record_mapping_round_trip(canonical_record_factory):
    record = canonical_record_factory(id=None, published_at=None, label="Label", copyright_text="(C)")

    create = recommendation_crud.to_create("user-1", record)

    assert create.song == record.title
    assert create.music == record.secondary_title
    assert create.duration == record.duration_seconds
    assert recommendation_crud.to_record(create) == record


def test_store_selects_dedup_keys_for_owner(
    *,
    db_transaction: Session,
    previously_recommended_factory,
):
    row = previously_recommended_factory(user_id="user-1")
    previously_recommended_factory(user_id="user-2")

    store = recommendation_crud.PreviouslyRecommendedStore()
    records = store.select_by_owner(db_transaction, "user-1")

    assert len(records) == 1
    assert records[0].media_url == row.media_url
    assert records[0].title == row.song
