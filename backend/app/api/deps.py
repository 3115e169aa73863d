from collections.abc import Callable, Generator

from fastapi import Depends, HTTPException, Path, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.security import Principal, decode_token, principal_from_claims
from app.db.session import SessionLocal
from app.schemas.timetable import validate_iso_date
from app.services.store import TimetableStore
from app.services.summaries import (
    AiConfigProvider,
    EnvironmentAiConfig,
    SummarizerFactory,
    SummaryOrchestrator,
)
from app.services.summarizer import GeminiSummarizer

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> TimetableStore:
    return TimetableStore(db)


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        return principal_from_claims(decode_token(credentials.credentials))
    except JWTError as exc:
        raise credentials_exception from exc


def get_class_member(
    class_id: str = Path(min_length=1, max_length=64),
    current_user: Principal = Depends(get_current_user),
) -> Principal:
    if current_user.class_id != class_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this class")
    return current_user


def require_class_admin(current_user: Principal = Depends(get_class_member)) -> Principal:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return current_user


def require_permission(permission: str) -> Callable[..., Principal]:
    """Admins always pass; students need ``permission`` enabled in the class settings."""

    def permission_checker(
        class_id: str = Path(min_length=1, max_length=64),
        current_user: Principal = Depends(get_class_member),
        store: TimetableStore = Depends(get_store),
    ) -> Principal:
        if current_user.is_admin:
            return current_user
        permissions = store.get_settings(class_id).student_permissions
        if not getattr(permissions, permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return permission_checker


def get_ai_config() -> AiConfigProvider:
    return EnvironmentAiConfig()


def get_summarizer_factory() -> SummarizerFactory:
    return GeminiSummarizer


def get_summary_orchestrator(
    store: TimetableStore = Depends(get_store),
    config: AiConfigProvider = Depends(get_ai_config),
    summarizer_factory: SummarizerFactory = Depends(get_summarizer_factory),
) -> SummaryOrchestrator:
    return SummaryOrchestrator(store, config, summarizer_factory)


def parse_iso_date(value: str) -> str:
    try:
        return validate_iso_date(value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


def get_date(date: str = Path(min_length=10, max_length=10)) -> str:
    return parse_iso_date(date)
