# backend/main.py
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from database import SessionLocal, init_db, check_connection

# Routers
from routes.auth import router as auth_router
from routes.equipment import router as equipment_router
from routes.requests import router as requests_router
from routes.teams import router as teams_router
from routes.users import router as users_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting GearGuard API (%s)", settings.ENVIRONMENT)
    init_db()

    if settings.AUTH_BYPASS:
        logger.warning(
            "AUTH_BYPASS is enabled: unauthenticated calls act as user %s (manager). "
            "Never enable this outside local development.",
            settings.BYPASS_USER_ID,
        )
        # Local import keeps seeding out of the request-handling modules
        from utils.bootstrap import ensure_demo_user

        db = SessionLocal()
        try:
            ensure_demo_user(db)
        finally:
            db.close()

    yield
    logger.info("GearGuard API shutting down")


app = FastAPI(title="GearGuard API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(auth_router)
app.include_router(equipment_router)
app.include_router(requests_router)
app.include_router(teams_router)
app.include_router(users_router)
app.include_router(logs_router)


# ==================== ERROR HANDLERS ====================

# Every failure leaves as {"error": ...}; dict details carry their own shape
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


# Malformed bodies and query strings are client errors: 400, not 422
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, errors)
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"{field}: {message}" if field else message},
    )


def _server_error(exc: Exception) -> JSONResponse:
    content = {"error": "Internal server error"}
    if settings.is_development:
        content["message"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    orig = getattr(exc, "orig", None)
    logger.error(
        "Storage error on %s %s: %s | code=%s detail=%s hint=%s",
        request.method,
        request.url.path,
        exc,
        getattr(exc, "code", None),
        getattr(getattr(orig, "diag", None), "message_detail", None),
        getattr(getattr(orig, "diag", None), "message_hint", None),
    )
    return _server_error(exc)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _server_error(exc)


# ==================== REQUEST LOGGING ====================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    if request.url.path == "/health":
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - started
    logger.info("%s %s - %s (%.3fs)", request.method, request.url.path, response.status_code, duration)
    return response


# ==================== SYSTEM ====================

@app.get("/")
def read_root():
    return {"message": "GearGuard API is running"}


@app.get("/health")
def health_check():
    db_ok = check_connection()
    return {"status": "ok", "database": "connected" if db_ok else "disconnected"}
