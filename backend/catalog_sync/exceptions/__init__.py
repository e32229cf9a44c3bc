from .base import AppError, CatalogValidationError
from .store import PodcastNotFoundError, StoreError
from .upstream import (
    FatalUpstreamError,
    MalformedResponseError,
    ReconcileTimeoutError,
    TransientUpstreamError,
    UpstreamUnavailableError,
)

__all__ = [
    "AppError",
    "CatalogValidationError",
    "FatalUpstreamError",
    "MalformedResponseError",
    "PodcastNotFoundError",
    "ReconcileTimeoutError",
    "StoreError",
    "TransientUpstreamError",
    "UpstreamUnavailableError",
]
