#!/usr/bin/env python3
"""
actor.py
--------------------
Caller identity and the authorization checks every pipeline operation
makes before touching the database.

Authentication happens elsewhere; the pipeline only receives an Actor
(user id plus admin flag) and authorizes against it and record ownership.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from typing import Optional

# --- Local imports ---
from showbook.core.exceptions import ForbiddenError, UnauthorizedError


@dataclass(frozen=True)
class Actor:
    """
    Authenticated caller.

    Attributes:
        user_id: Id of the calling user
        is_admin: Whether the caller has admin rights
    """

    user_id: Optional[int]
    is_admin: bool = False

    @classmethod
    def admin(cls, user_id: int) -> "Actor":
        return cls(user_id=user_id, is_admin=True)


def require_identity(actor: Optional[Actor]) -> Actor:
    """
    Ensure there is an authenticated caller.

    Raises:
        UnauthorizedError: If no actor or no user id was supplied
    """
    if actor is None or actor.user_id is None:
        raise UnauthorizedError("Authentication required")
    return actor


def require_admin(actor: Optional[Actor], action: str = "perform this action") -> Actor:
    """
    Ensure the caller is an admin.

    Raises:
        UnauthorizedError: If there is no caller
        ForbiddenError: If the caller is not an admin
    """
    actor = require_identity(actor)
    if not actor.is_admin:
        raise ForbiddenError(f"Admin access required to {action}")
    return actor


def require_owner_or_admin(
    actor: Optional[Actor], owner_id: Optional[int], action: str = "modify this record"
) -> Actor:
    """
    Ensure the caller is an admin or owns the record.

    Raises:
        UnauthorizedError: If there is no caller
        ForbiddenError: If the caller is neither the owner nor an admin
    """
    actor = require_identity(actor)
    if actor.is_admin or (owner_id is not None and owner_id == actor.user_id):
        return actor
    raise ForbiddenError(f"Only the submitter or an admin may {action}")
