import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .db import SessionLocal, init_db
from .errors import SeruError
from .limiter import limiter
from .models import Admin
from .routers import auth_api, bookings_api, dashboard_api, rooms_api
from .security import hash_password

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("seru.startup")
logger.info("Starting %s (DEBUG=%s)", settings.APP_NAME, getattr(settings, "DEBUG", False))

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        f"{settings.APP_NAME}: room booking API for the public site and the admin dashboard.\n\n"
        "Session-cookie based auth. Responses use the `{success, data}` / `{error}` envelope."
    ),
)

_CORS_CREDENTIALS = "*" not in settings.CORS_ALLOW_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=_CORS_CREDENTIALS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
logger.info("CORS allow_origins=%s allow_credentials=%s", settings.CORS_ALLOW_ORIGINS, _CORS_CREDENTIALS)

@app.on_event("startup")
def startup_event():
    """Creates the schema and ensures a default admin exists."""
    logger.info("Running startup tasks...")
    init_db()

    def _ensure_default_admin():
        db = SessionLocal()
        try:
            if db.query(Admin).first():
                return
            admin = Admin(admin_name=settings.ADMIN_NAME, hashed_password=hash_password(settings.ADMIN_PASSWORD))
            db.add(admin)
            db.commit()
            logger.info("Default admin '%s' created.", settings.ADMIN_NAME)
        finally:
            db.close()

    _ensure_default_admin()
    logger.info("Startup tasks complete.")


# --- Error envelope: every failure is {"error": "<message>"} ---
@app.exception_handler(SeruError)
def seru_error_handler(request: Request, exc: SeruError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)

@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid {field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=400)

@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


# Add the limiter to the app state
app.state.limiter = limiter
# Add the exception handler for rate limit exceeded errors
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth_api.router)
app.include_router(rooms_api.router)
app.include_router(bookings_api.router)
app.include_router(dashboard_api.router)

@app.get("/healthz")
@limiter.exempt
def healthz():
    return {"status": "ok"}
