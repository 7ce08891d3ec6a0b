from fastapi import APIRouter, Depends
from app.api.deps import get_settings
from app.api.endpoints import payment
from app.core.config import Settings
from app.schemas.common import HealthResponse

api_router = APIRouter()
api_router.include_router(payment.router, prefix="/api", tags=["payment"])

@api_router.get("/health", tags=["health"], response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    return HealthResponse(ok=True, env=settings.APP_ENV)
