import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from app.api.v1.analytics import router as analytics_router
from app.api.v1.cover_letter import router as cover_letter_router
from app.api.v1.health import router as health_router
from app.api.v1.prompts import router as prompts_router
from app.api.v1.resume import router as resume_router
from app.api.v1.storage import router as storage_router
from app.core.cors import cors_options
from app.core.error_handlers import register_error_handlers
from app.core.rate_limit import limiter
from app.core.config import settings
from dotenv import load_dotenv
from app.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="Coverforge API", version="0.1.0", lifespan=lifespan)

app.add_middleware(CORSMiddleware, **cors_options())
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
register_error_handlers(app)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(resume_router, prefix="/v1", tags=["Resume"])
app.include_router(cover_letter_router, prefix="/v1", tags=["Cover Letter"])
app.include_router(prompts_router, prefix="/v1", tags=["Prompts"])
app.include_router(storage_router, prefix="/v1", tags=["Storage"])
app.include_router(analytics_router, prefix="/v1", tags=["Analytics"])
