import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import Settings
from app.core.processor import PaymentProcessor
from app.core.supabase import DocumentStore, SupabaseDocumentStore, build_document_store
from app.api.api import api_router
from app.services.exceptions import InvalidRequest, PaymentError
from app.services.order_service import OrderService
from app.services.reconciler import PaymentReconciler

# Logging Configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    processor: Optional[PaymentProcessor] = None,
    store: Optional[DocumentStore] = None,
) -> FastAPI:
    """
    Builds the application and every service it uses.

    Settings are read once here; the processor client and document store
    are constructed from them unless passed in, then handed to the
    services explicitly.
    """
    settings = settings or Settings()
    processor = processor or PaymentProcessor.from_settings(settings)
    store = store or build_document_store(settings)

    if not settings.RZP_WEBHOOK_SECRET:
        logger.warning("RZP_WEBHOOK_SECRET not set. All webhook deliveries will be rejected.")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Initialize Supabase Client
        if isinstance(store, SupabaseDocumentStore):
            try:
                await store.get_client()
                logger.info("Supabase client initialized.")
            except Exception as e:
                logger.error(f"Failed to initialize Supabase client: {e}")
        yield

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

    app.state.settings = settings
    app.state.processor = processor
    app.state.store = store
    app.state.order_service = OrderService(
        processor,
        store,
        capture_mode=settings.DEFAULT_PAYMENT_CAPTURE,
        collection=settings.ORDERS_COLLECTION,
    )
    app.state.reconciler = PaymentReconciler(settings, processor, store)

    # CORS - restrict to configured frontend origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PaymentError)
    async def payment_exception_handler(request: Request, exc: PaymentError):
        if exc.status_code >= 500:
            logger.error(f"{exc.error}: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(p) for p in err["loc"][1:]) for err in exc.errors())
        error = InvalidRequest(f"invalid or missing fields: {fields}" if fields else "invalid request body")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "internal_server_error", "detail": str(exc)},
        )

    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.PORT)
