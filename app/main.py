from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import time
import logging

from .api.v1 import appointments, auth, doctors, patients
from .core.config import settings
from .core.database import SessionLocal, get_redis, init_db
from .core.exceptions import register_exception_handlers

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Clinic management API: doctor schedules, availability and appointment booking",
    openapi_url=f"{API_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# TestClient sends its own Host header
if not settings.TESTING:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["localhost", "127.0.0.1", "*.localhost", "testserver"]
    )

@app.middleware("http")
async def log_request_timing(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"

    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.4f}s)")
    return response

register_exception_handlers(app)

@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    # Services raise 404s with a useful detail ("Doctor not found"); unknown routes do not
    if isinstance(exc, HTTPException) and exc.detail and exc.detail != "Not Found":
        return JSONResponse(status_code=404, content={"detail": exc.detail})
    return JSONResponse(
        status_code=404,
        content={"detail": f"No route for {request.method} {request.url.path}"}
    )

for module in (auth, appointments, doctors, patients):
    app.include_router(module.router, prefix=API_PREFIX)

@app.on_event("startup")
async def startup_event():
    """Create tables and the live-slot index if they are missing."""
    db_url = settings.get_database_url
    backend = db_url.split(":", 1)[0]
    logger.info(f"Starting {settings.APP_NAME} {settings.VERSION} on {backend}")

    try:
        init_db()
    except Exception:
        logger.exception("Database initialization failed")
        raise

    logger.info(f"Slot interval is {settings.SLOT_INTERVAL_MINUTES} minutes")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"{settings.APP_NAME} shutting down")

@app.get("/health")
def health_check():
    """Report database and queue reachability."""
    checks = {}

    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.error(f"Health check: database unreachable: {e}")
        checks["database"] = "unavailable"
    finally:
        db.close()

    try:
        get_redis().llen(settings.NOTIFICATION_QUEUE)
        checks["notificationQueue"] = "ok"
    except Exception as e:
        logger.error(f"Health check: notification queue unreachable: {e}")
        checks["notificationQueue"] = "unavailable"

    healthy = all(value == "ok" for value in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "version": settings.VERSION,
            "checks": checks,
        }
    )

@app.get(f"{API_PREFIX}/info")
async def api_info():
    """Entry points of the booking API."""
    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "slotIntervalMinutes": settings.SLOT_INTERVAL_MINUTES,
        "endpoints": {
            "register": f"{API_PREFIX}/auth/register",
            "login": f"{API_PREFIX}/auth/login",
            "doctors": f"{API_PREFIX}/doctors",
            "weeklySchedule": f"{API_PREFIX}/doctors/{{doctorId}}/schedule",
            "availability": f"{API_PREFIX}/appointments/availability?doctorId=&date=",
            "book": f"{API_PREFIX}/appointments/book",
            "myAppointments": f"{API_PREFIX}/appointments/me",
        }
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
