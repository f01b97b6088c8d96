from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe with rate cache diagnostics")
async def health(request: Request):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "version": settings.version,
        "rates": request.app.state.rate_service.cache_info(),
    }
