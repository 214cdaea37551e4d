import logging
import time as time_lib
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import get_settings
from core.logging_config import setup_logging
from routers.support import diagnostics
from routers.webhooks import mindbody

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

SERVICE_NAME = "Mindbody-WATI Webhook"


# --- 1. MIDDLEWARES ---

class TimeProcessMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time_lib.perf_counter()
        response = await call_next(request)
        process_time = (time_lib.perf_counter() - start_time) * 1000

        logger.info(
            "⏱️  %s %s | %.2fms | Status: %s",
            request.method, request.url.path, process_time, response.status_code,
        )
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        return response


# --- 2. INSTANCIA DE APP ---
app = FastAPI(
    title="Mindbody WATI Webhook",
    description="Forwards Mindbody appointment bookings as WhatsApp confirmations through WATI",
    version="1.0.0",
)


def _errors_without_ctx(exc: RequestValidationError):
    # pydantic v2 keeps the raised exception object under "ctx"
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Logs which field failed and what the client actually sent before
    answering the usual 422.
    """
    logger.warning("❌ VALIDATION ERROR on %s: %s | body: %s", request.url.path, exc.errors(), exc.body)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({
            "detail": _errors_without_ctx(exc),
            "body_received": exc.body,
        }),
    )


# --- 3. EVENTOS DE SISTEMA ---
@app.on_event("startup")
async def startup_event():
    logger.info("🚀 %s running on port %s", SERVICE_NAME, settings.port)
    logger.info("📡 WATI endpoint: %s", settings.wati_endpoint)
    logger.info("📝 Template: %s", settings.wati_template_name)
    if not settings.wati_access_token:
        logger.warning("⚠️ WATI_ACCESS_TOKEN is not set, outbound messages will be rejected")
    if settings.mindbody_webhook_secret and not settings.mindbody_verify_signature:
        logger.info("🔑 MINDBODY_WEBHOOK_SECRET configured but signature verification is disabled")


app.add_middleware(TimeProcessMiddleware)

# 4. Router Registration
app.include_router(mindbody.router, prefix="/webhook/mindbody", tags=["Mindbody Webhooks"])
app.include_router(diagnostics.router, tags=["Testing & Debug"])


# 5. Health Checks
@app.get("/", tags=["System"])
def health_check():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health", tags=["System"])
def health():
    # Railway health check
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)
