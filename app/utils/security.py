"""
Actor resolution for incoming requests.

Authentication happens upstream (gateway/session layer). It forwards the
verified identity in two headers, which this module turns into an Actor:
- X-User-ID:   verified user ID
- X-User-Role: CITIZEN, WORKER or ADMIN
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from app.models.user import Actor, UserRole

logger = logging.getLogger(__name__)


def get_current_actor(
    user_id: Optional[str] = Header(None, alias="X-User-ID", description="Verified user ID"),
    role: Optional[str] = Header(None, alias="X-User-Role", description="Verified user role"),
) -> Actor:
    """
    FastAPI dependency returning the verified caller.

    Raises:
        401: Identity headers missing
        403: Unknown role
    """
    if not user_id or not user_id.strip() or not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID / X-User-Role headers"
        )

    try:
        user_role = UserRole(role.strip().upper())
    except ValueError:
        logger.warning(f"Rejected request with unknown role '{role}' for user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role: {role}"
        )

    return Actor(user_id=user_id.strip(), role=user_role)
