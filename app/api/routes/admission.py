from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.core.cache import get_response_cache
from app.core.config import Settings
from app.core.rate_limit import enforce_rate_limit, get_rate_limiter
from app.schemas.admission import AdmissionStatus, ApiResponse, SweeperStatus
from app.utils.ttl_cache import TTLCache, build_cache_key

router = APIRouter(tags=["Admission"])

STATUS_CACHE_KEY = build_cache_key("admission:status")


@router.get(
    "/admission/status",
    response_model=ApiResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def admission_status(
    request: Request,
    limiter: AbstractRateLimiter = Depends(get_rate_limiter),
    cache: TTLCache = Depends(get_response_cache),
) -> ApiResponse:
    """Report rate limiter, cache and sweeper state.

    The snapshot goes through the response cache like any other read route,
    so repeated polling within ``status_cache_ttl_seconds`` returns the same
    payload.

    Returns:
        ApiResponse: Envelope whose ``data`` is an ``AdmissionStatus``.
    """

    cached = cache.get(STATUS_CACHE_KEY)
    if cached is not None:
        return ApiResponse(data=cached, message="Status retrieved from cache")

    sweepers = {
        sweeper.name: SweeperStatus(
            running=sweeper.is_running,
            interval_seconds=sweeper.interval_seconds,
        )
        for sweeper in request.app.state.sweepers
    }
    snapshot = AdmissionStatus(
        rate_limiter=limiter.stats(),
        cache=cache.stats(),
        sweepers=sweepers,
        generated_at=int(request.app.state.clock()),
    )

    app_settings: Settings = request.app.state.settings
    cache.set(STATUS_CACHE_KEY, snapshot, ttl_seconds=app_settings.app.status_cache_ttl_seconds)
    return ApiResponse(data=snapshot)
