import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .core.config import settings
from .core.logging_config import configure_logging
from .db.session import init_db, SessionLocal
from .api import auth, devices, projects, readings, thresholds, users
from .services.seed import seed_default_thresholds, seed_demo_data, seed_superadmin
from .services.thresholds import ThresholdLookupError

logger = logging.getLogger(__name__)

app = FastAPI(title="RAS Monitoring API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(devices.router)
app.include_router(readings.router)
app.include_router(thresholds.router)

@app.exception_handler(ThresholdLookupError)
async def threshold_lookup_failed(request: Request, exc: ThresholdLookupError):
    logger.error("Threshold lookup failed on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Threshold lookup failed"})

@app.on_event("startup")
def on_startup():
    configure_logging(settings.LOG_LEVEL)
    init_db()
    db = SessionLocal()
    try:
        seed_default_thresholds(db)
        seed_superadmin(db)
        if settings.SEED_DEMO_DATA:
            seed_demo_data(db)
    finally:
        db.close()

@app.get("/health")
def health(): return {"ok": True}
