import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from eventapi.config import config
from eventapi.database import database
from eventapi.errors import ApiError
from eventapi.logging_conf import configure_logging
from eventapi.routers.certificate import router as certificate_router
from eventapi.routers.form import router as form_router
from eventapi.routers.user import router as user_router
from eventapi.storage import get_storage
from eventapi.utils import response

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # connect database
    await database.connect()
    try:
        get_storage().ensure_bucket()
    except Exception as e:
        logger.error(f"MinIO setup failed: {e}")
    yield
    # disconnect database
    await database.disconnect()


app = FastAPI(
    title="Event System API",
    description="API for event forms, responses and certificates",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    result = await call_next(request)
    logger.info(
        "request",
        extra={
            "method": request.method,
            "url": str(request.url.path),
            "status_code": result.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000),
            "ip": request.client.host if request.client else None,
        },
    )
    return result


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return response.failure(exc.status_code, exc.message, exc.errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    failure = response.failure(exc.status_code, str(exc.detail))
    if exc.headers:
        failure.headers.update(exc.headers)
    return failure


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return response.failure(422, "Validation failed", exc.errors())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return response.failure(500, "Internal server error")


app.include_router(user_router, prefix="/api/user", tags=["User"])
app.include_router(form_router, prefix="/api/forms", tags=["Form"])
app.include_router(certificate_router, prefix="/api/certificates", tags=["Certificate"])
