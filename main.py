from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from apscheduler.schedulers.background import BackgroundScheduler
from contextlib import asynccontextmanager
from sqlalchemy import text
import logging

from app.logging_config import configure_logging

configure_logging()

from app.config import settings
from app.database import engine, Base, SessionLocal
from app.errors import AppError, InternalError, ValidationError
from app.limiter import limiter
from app.routes import auth, billing, cta, email, leads, subscribers, support, whatsapp

logger = logging.getLogger(__name__)


def run_trial_reminders():
    try:
        from app.tasks.trial_reminders import send_trial_reminders
        send_trial_reminders()
    except Exception as e:
        logger.error(f"Trial reminders error: {e}")


def run_cleanup():
    try:
        from app.tasks.cleanup import purge_stale_throttling
        purge_stale_throttling()
    except Exception as e:
        logger.error(f"Cleanup error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    scheduler = BackgroundScheduler()
    scheduler.add_job(run_trial_reminders, 'cron', hour=9, minute=0)
    scheduler.add_job(run_cleanup, 'interval', hours=1)
    scheduler.start()
    logger.info("Scheduler started")
    yield
    scheduler.shutdown()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ─── Error rendering ─────────────────────────────────────────────────────────

def _error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.code} {exc.message}")
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return _error_response(ValidationError(message))


@app.middleware("http")
async def unhandled_error_middleware(request: Request, call_next):
    # Sits inside CORSMiddleware: 500 responses keep the CORS headers
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(InternalError(str(exc) if settings.DEBUG else "Internal server error"))


app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router,        prefix="/api/auth",        tags=["auth"])
app.include_router(leads.router,       prefix="/api/leads",       tags=["leads"])
app.include_router(cta.router,         prefix="/api/cta-clicks",  tags=["cta"])
app.include_router(subscribers.router, prefix="/api/subscribers", tags=["subscribers"])
app.include_router(billing.router,     prefix="/api/billing",     tags=["billing"])
app.include_router(support.router,     prefix="/api/support",     tags=["support"])
app.include_router(whatsapp.router,    prefix="/api/whatsapp",    tags=["whatsapp"])
app.include_router(email.router,       prefix="/api/email",       tags=["email"])


@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "service": settings.APP_NAME}

@app.get("/health", include_in_schema=False)
def health():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "ok"}
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "error"})
    finally:
        db.close()
