from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
import os

from labtrack.database import engine, SessionLocal
from labtrack.database import Base
import labtrack.models  # noqa: F401, registers all models
from labtrack.models.user import User, Role
from labtrack.config import settings
from labtrack.services.user_service import hash_password
from labtrack.routers import health, auth, users, items, requests, reminders, notifications, activity
import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    # Ensure DB exists and tables are created (for dev mode without alembic)
    if settings.DATABASE_URL.startswith("sqlite:///./data"):
        os.makedirs("data", exist_ok=True)
    Base.metadata.create_all(bind=engine)

    # Create first admin user if no users exist yet
    db = SessionLocal()
    try:
        if not db.query(User).first():
            admin = User(
                username=settings.FIRST_ADMIN_USER,
                email=f"{settings.FIRST_ADMIN_USER}@labtrack.local",
                hashed_password=hash_password(settings.FIRST_ADMIN_PASS),
                role=Role.admin.value,
                is_active=True,
            )
            db.add(admin)
            db.commit()
            logger.info("Vytvořen první admin uživatel: %s", settings.FIRST_ADMIN_USER)
    finally:
        db.close()

    yield


app = FastAPI(
    title="LabTrack",
    description="Evidence přístrojů: kalibrace, výpůjčky, údržba",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    https_only=settings.APP_ENV == "production",
    same_site="lax",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.APP_ENV == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


app.add_middleware(SecurityHeadersMiddleware)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(items.router)
app.include_router(requests.router)
app.include_router(reminders.router)
app.include_router(notifications.router)
app.include_router(activity.router)
