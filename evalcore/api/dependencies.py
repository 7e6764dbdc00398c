"""FastAPI dependencies for caller identity.

Authentication happens upstream; the gateway forwards the authenticated user
id in the X-User-Id header. These dependencies only map it to a profile.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status
from loguru import logger
from sqlalchemy.orm import Session

from evalcore.db.session import get_db
from evalcore.evaluations.errors import ErrorCode
from evalcore.evaluations.identity import DbProfileResolver
from evalcore.evaluations.schemas import CallerProfile, ProfileRole


def get_current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """Return the authenticated caller id.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        logger.warning("[AUTH] Request without X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": ErrorCode.UNAUTHENTICATED.value, "message": "Authentication required."},
        )
    return x_user_id.strip()


def _resolve(user_id: str, db: Session, role: ProfileRole | None) -> CallerProfile:
    profile = DbProfileResolver(db).resolve_profile(user_id, role)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": ErrorCode.FORBIDDEN.value, "message": f"No {role or 'evaluation'} profile for this user."},
        )
    return profile


def get_caller(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)) -> CallerProfile:
    return _resolve(user_id, db, None)


def get_athlete_caller(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)) -> CallerProfile:
    return _resolve(user_id, db, ProfileRole.ATHLETE)


def get_guide_caller(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)) -> CallerProfile:
    return _resolve(user_id, db, ProfileRole.GUIDE)
