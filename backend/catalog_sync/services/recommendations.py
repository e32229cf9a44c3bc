import asyncio
from collections.abc import Sequence

from sqlmodel import Session

from catalog_sync.core.enums import ReconcileStage
from catalog_sync.crud import recommendation as recommendations_crud
from catalog_sync.ingestion import config, track_catalog
from catalog_sync.ingestion.batching import Deadline
from catalog_sync.inputs.catalog import PageParams, RecommendationParams, parse_input
from catalog_sync.models.recommendation import PreviouslyRecommended
from catalog_sync.schemas.catalog import TrackQueryResult
from catalog_sync.schemas.results import RecommendationResult
from catalog_sync.services.reconcile import log_stage, reconcile, require_owner_scope


async def _search_all_async(queries: Sequence[str]) -> list[TrackQueryResult]:
    deadline = Deadline(config.RECONCILE_DEADLINE_SECONDS)
    async with track_catalog.track_fetcher() as fetcher:
        return await track_catalog.search_many_tracks_async(fetcher, queries, deadline=deadline)


def recommend(
    *,
    session: Session,
    owner_scope: str,
    queries: Sequence[str],
) -> RecommendationResult:
    """
    Search tracks for every query and remember the ones new to this user.

    Parameters:
        session (Session): Database session.
        owner_scope (str): The user receiving the recommendations.
        queries (Sequence[str]): Search strings, one track search each.
    Returns:
        RecommendationResult: Per-query results in query order, the records
            newly stored for the user and the number of records fetched.
    Raises:
        CatalogValidationError: If the owner or the queries are missing.
        ReconcileTimeoutError: If the searches exceed the time budget.
        StoreError: If reading or writing the recommendation history fails.
    """
    require_owner_scope(owner_scope)
    params = parse_input(RecommendationParams, {"queries": list(queries)})

    log_stage(owner_scope, ReconcileStage.FETCHING)
    results = asyncio.run(_search_all_async(params.queries))
    log_stage(owner_scope, ReconcileStage.NORMALIZING)
    candidates = [record for result in results if result.ok for record in result.records]

    reconciled = reconcile(
        session=session,
        owner_scope=owner_scope,
        candidates=candidates,
        store=recommendations_crud.PreviouslyRecommendedStore(),
    )

    return RecommendationResult(results=results, accepted=reconciled.accepted, total=len(candidates))


def get_previously_recommended(
    *,
    session: Session,
    owner_scope: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> list[PreviouslyRecommended]:
    require_owner_scope(owner_scope)
    paging = parse_input(PageParams, {"page": page, "limit": limit})
    return recommendations_crud.get_by_owner(
        session=session, user_id=owner_scope, limit=paging.limit, offset=paging.offset
    )
