from collections.abc import Callable, Generator, Iterable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.schemas.user import CurrentUser, UserRole
from app.services.schedule_hub import schedule_hub
from app.services.schedule_store import SqlScheduleStore
from app.services.slot_manager import SlotManager

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def principal_from_token(token: str) -> CurrentUser:
    """Resolve the caller from an identity-provider token; raises JWTError or ValidationError."""
    payload = decode_token(token)
    role = str(payload.get("role") or "").strip().lower()
    return CurrentUser(id=payload.get("sub") or "", name=payload.get("name") or "Unknown", role=role)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        return principal_from_token(credentials.credentials)
    except (JWTError, ValidationError) as exc:
        raise credentials_exception from exc


def require_roles(*roles: UserRole) -> Callable[[CurrentUser], CurrentUser]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_checker


def get_schedule_store(db: Session = Depends(get_db)) -> SqlScheduleStore:
    return SqlScheduleStore(db, hub=schedule_hub)


def get_slot_manager(store: SqlScheduleStore = Depends(get_schedule_store)) -> SlotManager:
    settings = get_settings()
    return SlotManager(
        store,
        days=settings.timetable_days,
        periods=settings.timetable_periods,
        strict_commit=settings.timetable_strict_commit,
    )
