from sqlalchemy.orm import Session
from sqlalchemy import select
from passlib.context import CryptContext
from labtrack.errors import NotFound, ConflictError
from labtrack.models.user import User
from labtrack.schemas.user import UserCreate

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("Uživatel nenalezen")
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(User.username == username))


def create_user(db: Session, data: UserCreate) -> User:
    if get_user_by_username(db, data.username):
        raise ConflictError("Uživatelské jméno již existuje")
    user = User(
        username=data.username,
        email=data.email,
        hashed_password=hash_password(data.password),
        role=data.role.value,
        is_active=data.is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_users(db: Session) -> list[User]:
    return db.scalars(select(User).order_by(User.username)).all()
