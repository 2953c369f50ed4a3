"""Shared API dependencies for token authentication and service access."""

from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from fairseed.core.settings import settings
from fairseed.db.session import get_db
from fairseed.repositories.outcome_repo import OutcomeRepository
from fairseed.services.fairness_service import FairnessService

OPERATOR_ROLE = "operator"
PLAYER_ROLE = "player"

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_fairness_service(request: Request) -> FairnessService:
    """Return the fairness service owned by the running application."""
    service: FairnessService | None = getattr(request.app.state, "fairness_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Fairness service is not initialised",
        )
    return service


def get_outcome_repository(db: SessionDep) -> OutcomeRepository:
    """Return an outcome repository bound to the request's session."""
    return OutcomeRepository(db)


def _create_token(subject: str, role: str, minutes: int) -> str:
    to_encode: dict[str, object] = {
        "sub": subject,
        "role": role,
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def create_operator_token(subject: str, expires_minutes: int | None = None) -> str:
    """Create a JWT granting the operator role."""
    minutes = expires_minutes if expires_minutes is not None else settings.operator_token_expire_minutes
    return _create_token(subject, OPERATOR_ROLE, minutes)


def create_player_token(session_id: str, expires_minutes: int | None = None) -> str:
    """Create a JWT that identifies one player session."""
    minutes = expires_minutes if expires_minutes is not None else settings.player_token_expire_minutes
    return _create_token(session_id, PLAYER_ROLE, minutes)


def _decode_subject(credentials: HTTPAuthorizationCredentials, role: str) -> str:
    """Return the token subject if the token is valid and carries ``role``.

    Raises:
        HTTPException: 401 if the token is invalid, 403 if it carries another role.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    if payload.get("role") != role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"{role.capitalize()} role required",
        )
    return str(subject)


def require_operator(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Validate an operator bearer token and return its subject."""
    return _decode_subject(credentials, OPERATOR_ROLE)


def require_player(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Validate a player session token and return the session id.

    Operator tokens are refused, so the operator cannot act on a player's
    client seed.
    """
    return _decode_subject(credentials, PLAYER_ROLE)


FairnessServiceDep = Annotated[FairnessService, Depends(get_fairness_service)]
OutcomeRepositoryDep = Annotated[OutcomeRepository, Depends(get_outcome_repository)]
OperatorDep = Annotated[str, Depends(require_operator)]
PlayerSessionDep = Annotated[str, Depends(require_player)]
