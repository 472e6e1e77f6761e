# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""API dependencies for dependency injection.

Authentication is done by the host platform in front of this service. It
passes the authenticated user in the ``X-User-Id`` header and the user's
role in ``X-User-Role``.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status

from timetracking.config import settings
from timetracking.database import get_db
from timetracking.repository import PlainUserDirectory, UserDirectory

__all__ = [
    "CurrentUser",
    "get_current_admin",
    "get_current_user",
    "get_db",
    "get_user_directory",
]


@dataclass
class CurrentUser:
    """The user a request is made for."""

    id: str
    is_admin: bool = False


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CurrentUser:
    """Get the current user from the forwarded identity headers."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return CurrentUser(id=x_user_id, is_admin=x_user_role == settings.admin_role)


def get_current_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Get current user and verify they are an administrator."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_user_directory() -> UserDirectory:
    """Display names configured for this installation."""
    return PlainUserDirectory(settings.user_display_names)
