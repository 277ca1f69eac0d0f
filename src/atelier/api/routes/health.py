from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Liveness plus which credentials are configured."""
    settings = request.app.state.factory.settings
    return {
        "status": "ok",
        "image_backend": settings.image_backend,
        "credential_set": bool(settings.api_key),
        "chat_demo_mode": settings.chat_demo_mode,
    }
