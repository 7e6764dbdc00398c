"""Identity resolution for already-authenticated callers.

The core never authenticates. It receives an opaque caller id from the auth
collaborator and maps it to an athlete or guide profile.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from evalcore.db.models import Athlete, Guide
from evalcore.evaluations.schemas import CallerProfile, ProfileRole


class ProfileResolver(Protocol):
    def resolve_profile(self, caller_id: str, role: ProfileRole | None = None) -> CallerProfile | None: ...


class DbProfileResolver:
    """Resolve callers against the athletes and guides tables.

    A user can own both an athlete profile and a guide profile. Without an
    explicit role the guide profile wins, since only guides act on requests.
    """

    def __init__(self, session: Session):
        self.session = session

    def resolve_profile(self, caller_id: str, role: ProfileRole | None = None) -> CallerProfile | None:
        """Map a caller id to a profile.

        Args:
            caller_id: Authenticated user id
            role: Restrict resolution to one role

        Returns:
            CallerProfile or None if the caller has no matching profile
        """
        if role in {None, ProfileRole.GUIDE}:
            guide = self.session.scalars(select(Guide).where(Guide.user_id == caller_id)).one_or_none()
            if guide is not None:
                return CallerProfile(id=guide.id, role=ProfileRole.GUIDE, user_id=caller_id)

        if role in {None, ProfileRole.ATHLETE}:
            athlete = self.session.scalars(select(Athlete).where(Athlete.user_id == caller_id)).one_or_none()
            if athlete is not None:
                return CallerProfile(id=athlete.id, role=ProfileRole.ATHLETE, user_id=caller_id)

        logger.debug(f"[IDENTITY] No {role or 'any'} profile for caller", caller_id=caller_id)
        return None
