from fastapi import status

from .base import AppError


class StoreError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, operation: str, reason: str | None = None):
        self.operation = operation
        detail = f"Failed to {operation}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class PodcastNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, podcast_id: str):
        self.podcast_id = podcast_id
        detail = f"Saved podcast {podcast_id} not found for this user."
        super().__init__(detail)
