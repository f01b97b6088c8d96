from fastapi import APIRouter, Request, Response

from estate_api.core.config import get_settings
from estate_api.core.csrf import ensure_csrf_token

router = APIRouter(prefix="/api", tags=["security"])


@router.get("/csrf-token", summary="Issue (or echo) the caller's CSRF token")
async def csrf_token(request: Request, response: Response):
    settings = getattr(request.app.state, "settings", None) or get_settings()
    token = ensure_csrf_token(request, response, secure=settings.is_production)
    return {"csrfToken": token}
