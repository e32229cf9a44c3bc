from fastapi import status

from .base import AppError


class TransientUpstreamError(AppError):
    """Timeout, rate limit or server error; worth retrying."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, url: str, status: int | None = None, reason: str | None = None):
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            detail = f"Upstream returned {status} for {url}"
        else:
            detail = f"Upstream request to {url} failed: {reason or 'timeout'}"
        super().__init__(detail)


class FatalUpstreamError(AppError):
    """Retrying would not help (bad request, malformed body, exhausted retries)."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, url: str, detail: str, status: int | None = None):
        self.url = url
        self.status = status
        super().__init__(detail)


class MalformedResponseError(FatalUpstreamError):
    def __init__(self, url: str, reason: str):
        super().__init__(url, f"Malformed JSON from {url}: {reason}", status=None)


class UpstreamUnavailableError(FatalUpstreamError):
    def __init__(self, url: str, attempts: int, last_error: TransientUpstreamError):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            url,
            f"Upstream unavailable after {attempts} attempts: {last_error.detail}",
            status=last_error.status,
        )


class ReconcileTimeoutError(AppError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, stage: str, budget_seconds: float):
        self.stage = stage
        self.budget_seconds = budget_seconds
        detail = f"Reconciliation exceeded its {budget_seconds:g}s deadline during {stage}."
        super().__init__(detail)
