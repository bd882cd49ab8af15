import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from labtrack.database import get_db
from labtrack.identity import Actor
from labtrack.routers.auth import require_actor, require_admin
from labtrack.schemas.user import UserCreate, UserResponse
import labtrack.services.user_service as svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def me(db: Session = Depends(get_db), actor: Actor = Depends(require_actor)):
    return svc.get_user(db, actor.actor_id)


@router.get("", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db), _=Depends(require_admin)):
    return svc.get_users(db)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db), actor: Actor = Depends(require_admin)):
    user = svc.create_user(db, data)
    logger.info("AUDIT: uživatel '%s' (role=%s) vytvořen administrátorem %s", user.username, user.role, actor.actor_id)
    return user
