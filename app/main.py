import asyncio
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError

from app.api.v1.api_router import api_router
from app.api.v1.reservations.schemas import ReservationResponse
from app.core.config import settings
from app.core.exceptions import ConflictError, RentalError

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.DB_ECHO else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title="Rental Back-Office API",
    description="Vehicles, customers, reservations, spare vehicles and maintenance for a car-rental back office",
    version="1.0.0",
    openapi_url="/openapi.json",
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with actual frontend domains
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")

from app.core.startup import ensure_default_admin, ensure_tables


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    await ensure_tables()
    await ensure_default_admin()
    if settings.CRON_ENABLED:
        # Start spare reminder cron (non-blocking)
        from app.core.cron_runner import run_spare_reminder_cron_loop
        app.state.spare_reminder_cron_task = asyncio.create_task(run_spare_reminder_cron_loop())


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event."""
    task = getattr(app.state, "spare_reminder_cron_task", None)
    if task and not task.done():
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass  # expected on cancel


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Internal server error"})


@app.exception_handler(RentalError)
async def rental_error_handler(request: Request, exc: RentalError):
    content = {"message": exc.message}
    if isinstance(exc, ConflictError) and exc.conflicts:
        content["conflicts"] = [
            ReservationResponse.model_validate(r).model_dump(mode="json") for r in exc.conflicts
        ]
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "message": "Validation error",
            "errors": _serializable_validation_errors(exc.errors()),
        },
    )

# Exception handlers
@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

def _serializable_validation_errors(errors: list) -> list:
    """Convert validation error dicts to JSON-serializable form (e.g. ctx may contain Exception)."""
    out = []
    for e in errors:
        item = {"type": e.get("type"), "loc": e.get("loc"), "msg": e.get("msg")}
        if "ctx" in e and e["ctx"]:
            item["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        out.append(item)
    return out


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors_serializable = _serializable_validation_errors(exc.errors())
    logger.info(
        "Validation error 422: method=%s path=%s errors=%s",
        request.method,
        request.url.path,
        errors_serializable,
    )
    return JSONResponse(
        status_code=422,
        content={
            "message": "Validation error",
            "errors": errors_serializable,
        },
    )
