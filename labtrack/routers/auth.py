import logging
import time
from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException, Request, Form
from sqlalchemy.orm import Session

from labtrack.database import get_db
from labtrack.errors import Unauthorized, Forbidden
from labtrack.identity import Actor
from labtrack.models.user import User
from labtrack.services.user_service import verify_password, get_user_by_username

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

MANAGER_ROLES = {"manager", "admin"}

# ── Rate limiting (in-memory, per IP) ──────────────────────────────────────
_login_attempts: dict[str, list[float]] = defaultdict(list)
_RATE_LIMIT_WINDOW = 60   # seconds
_RATE_LIMIT_MAX = 10      # max attempts per window


def _check_rate_limit(ip: str) -> bool:
    now = time.time()
    _login_attempts[ip] = [t for t in _login_attempts[ip] if now - t < _RATE_LIMIT_WINDOW]
    if len(_login_attempts[ip]) >= _RATE_LIMIT_MAX:
        return False
    _login_attempts[ip].append(now)
    return True


def _reset_rate_limit(ip: str) -> None:
    """Clear failed attempts after successful login."""
    _login_attempts.pop(ip, None)


def require_actor(request: Request, db: Session = Depends(get_db)) -> Actor:
    """Dependency: identita ze session, jinak 401."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise Unauthorized()
    user = db.get(User, user_id)
    if not user or not user.is_active:
        request.session.clear()
        raise Unauthorized()
    return Actor(actor_id=user.id, role=user.role)


def require_manager(actor: Actor = Depends(require_actor)) -> Actor:
    """Dependency: requires role manager or admin."""
    if actor.role not in MANAGER_ROLES:
        raise Forbidden()
    return actor


def require_admin(actor: Actor = Depends(require_actor)) -> Actor:
    """Dependency: requires role admin."""
    if not actor.is_admin:
        raise Forbidden("Pouze pro administrátory")
    return actor


@router.post("/login")
def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    ip = request.client.host if request.client else "unknown"
    if not _check_rate_limit(ip):
        raise HTTPException(status_code=429, detail="Příliš mnoho pokusů. Zkuste to za chvíli.")
    user = get_user_by_username(db, username)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning("AUDIT: neúspěšné přihlášení pro uživatele '%s' z IP %s", username, ip)
        raise Unauthorized("Nesprávné jméno nebo heslo.")
    if not user.is_active:
        logger.warning("AUDIT: pokus o přihlášení deaktivovaného účtu '%s' z IP %s", username, ip)
        raise Forbidden("Účet je deaktivován.")
    _reset_rate_limit(ip)
    logger.info("AUDIT: přihlášení '%s' (role=%s) z IP %s", username, user.role, ip)
    request.session["user_id"] = user.id
    request.session["username"] = user.username
    request.session["role"] = user.role
    return {"id": user.id, "username": user.username, "role": user.role}


@router.get("/logout")
def logout(request: Request):
    request.session.clear()
    return {"ok": True}
