"""Status, diagnostics and refresh API routes."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from rainwake.api.deps import ForecastCacheDep, PreferencesDep, RefreshServiceDep
from rainwake.models.status import AppStatus
from rainwake.notification.refresh import RefreshFailed
from rainwake.schemas.common import APIResponse
from rainwake.schemas.settings import RefreshResponse, StatusResponse

router = APIRouter(tags=["status"])

_CACHE_AGE_STATUSES = {AppStatus.FETCH_FAILED_NETWORK, AppStatus.USING_CACHED_DATA}


@router.get("/status", response_model=APIResponse[StatusResponse])
async def get_status(
    preferences: PreferencesDep,
    cache: ForecastCacheDep,
) -> APIResponse[StatusResponse]:
    """Get the current status snapshot."""
    info = await preferences.get_status()
    if info.status in _CACHE_AGE_STATUSES:
        info = info.model_copy(update={"cache_age": await cache.get_age_string()})
    return APIResponse(data=StatusResponse.from_status(info))


@router.get("/diagnostics", response_class=PlainTextResponse)
async def get_diagnostics(preferences: PreferencesDep) -> str:
    """Dump stored state as plain text."""
    return await preferences.get_diagnostic_info()


@router.post("/refresh", response_model=APIResponse[RefreshResponse])
async def refresh(service: RefreshServiceDep) -> APIResponse[RefreshResponse]:
    """Check the weather now and schedule accordingly."""
    result = await service.refresh()
    if isinstance(result, RefreshFailed):
        raise HTTPException(status_code=503, detail=result.message)
    return APIResponse(data=RefreshResponse(message=result.message, is_scheduled=result.is_scheduled))
