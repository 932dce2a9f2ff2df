#!/usr/bin/env python3
"""
lifecycle.py
--------------------
The show moderation state machine.

Every status change goes through ShowLifecycle.apply, which looks the
(current status, action) pair up in TRANSITIONS. Pairs missing from the
table are illegal and raise InvalidTransitionError without touching the
show.

    pending  --approve-->       approved   (admin; may cascade-verify venues)
    pending  --reject-->        rejected   (admin; reason required)
    pending  --make_private-->  private    (submitter or admin)
    private  --publish-->       approved if every venue is verified,
                                else pending (submitter or admin)
    approved --unpublish-->     pending    (submitter or admin)

rejected has no outgoing edges. is_sold_out and is_cancelled are plain
flags outside this machine.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

# --- Third party imports ---
from sqlalchemy.orm import Session

# --- Local imports ---
from showbook.core.exceptions import InvalidTransitionError, ValidationError
from showbook.core.logging_manager import ShowbookLogger, safe_logger
from showbook.core.validators import DataValidator
from showbook.database.managers import VenueManager
from showbook.database.models import Show, ShowStatus
from .actor import Actor, require_admin, require_owner_or_admin


class ShowAction(str, Enum):
    """Lifecycle actions a caller can request."""

    APPROVE = "approve"
    REJECT = "reject"
    MAKE_PRIVATE = "make_private"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class SideEffect(str, Enum):
    VERIFY_VENUES = "verify_venues"
    RECORD_REASON = "record_reason"
    CLEAR_REASON = "clear_reason"


@dataclass(frozen=True)
class Transition:
    """
    One legal edge of the state machine.

    Attributes:
        target: Resulting status; None means approved when every venue of
            the show is verified and pending otherwise
        admin_only: Whether only admins may take this edge
        side_effects: Extra work done with the status change
    """

    target: Optional[ShowStatus]
    admin_only: bool
    side_effects: Tuple[SideEffect, ...] = ()

    def resolve_target(self, show: Show) -> ShowStatus:
        if self.target is not None:
            return self.target
        return ShowStatus.APPROVED if show.all_venues_verified else ShowStatus.PENDING


TRANSITIONS: Dict[Tuple[ShowStatus, ShowAction], Transition] = {
    (ShowStatus.PENDING, ShowAction.APPROVE): Transition(
        ShowStatus.APPROVED,
        admin_only=True,
        side_effects=(SideEffect.CLEAR_REASON, SideEffect.VERIFY_VENUES),
    ),
    (ShowStatus.PENDING, ShowAction.REJECT): Transition(
        ShowStatus.REJECTED,
        admin_only=True,
        side_effects=(SideEffect.RECORD_REASON,),
    ),
    (ShowStatus.PENDING, ShowAction.MAKE_PRIVATE): Transition(
        ShowStatus.PRIVATE, admin_only=False
    ),
    (ShowStatus.PRIVATE, ShowAction.PUBLISH): Transition(None, admin_only=False),
    (ShowStatus.APPROVED, ShowAction.UNPUBLISH): Transition(
        ShowStatus.PENDING, admin_only=False
    ),
}

ADMIN_ONLY_ACTIONS = frozenset(
    action for (_, action), transition in TRANSITIONS.items() if transition.admin_only
)


def initial_status(
    is_private: bool, is_admin: bool, all_venues_verified: bool
) -> ShowStatus:
    """Status of a newly created show."""
    if is_private:
        return ShowStatus.PRIVATE
    if is_admin and all_venues_verified:
        return ShowStatus.APPROVED
    return ShowStatus.PENDING


def is_legal(status: ShowStatus, action: ShowAction) -> bool:
    return (status, action) in TRANSITIONS


@dataclass
class TransitionResult:
    show: Show
    previous: ShowStatus
    action: ShowAction
    verified_venue_ids: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.previous != self.show.status


class ShowStateMachine(ABC):
    """Moves shows between moderation statuses."""

    @abstractmethod
    def apply(
        self,
        show: Show,
        action: ShowAction,
        actor: Optional[Actor],
        reason: Optional[str] = None,
        verify_venues: bool = False,
    ) -> TransitionResult:
        """Apply one action to ``show`` in the current transaction."""


LifecycleFactory = Callable[[Session, Optional[ShowbookLogger]], ShowStateMachine]


class ShowLifecycle(ShowStateMachine):
    """Applies lifecycle actions to shows of one session."""

    def __init__(self, session: Session, logger: Optional[ShowbookLogger] = None) -> None:
        self.session = session
        self.logger = logger
        self.venues = VenueManager(session, logger)

    def authorize(self, show: Show, action: ShowAction, actor: Optional[Actor]) -> Actor:
        """
        Check the caller may request ``action`` on ``show`` at all.

        Raises:
            UnauthorizedError: No identity
            ForbiddenError: Not admin for an admin-only action, or neither
                submitter nor admin otherwise
        """
        if action in ADMIN_ONLY_ACTIONS:
            return require_admin(actor, f"{action.label} shows")
        return require_owner_or_admin(actor, show.submitted_by, f"{action.label} this show")

    def apply(
        self,
        show: Show,
        action: ShowAction,
        actor: Optional[Actor],
        reason: Optional[str] = None,
        verify_venues: bool = False,
    ) -> TransitionResult:
        """
        Move a show along one edge of the state machine.

        Args:
            show: Show to transition
            action: Requested action
            actor: Caller
            reason: Rejection reason (required for reject)
            verify_venues: On approve, verify every unverified venue

        Returns:
            TransitionResult with the previous status and any venues verified

        Raises:
            UnauthorizedError / ForbiddenError: See authorize()
            ValidationError: Reject without a reason
            InvalidTransitionError: No edge for (status, action)
        """
        actor = self.authorize(show, action, actor)

        transition = TRANSITIONS.get((show.status, action))
        if transition is None:
            raise InvalidTransitionError(show.status.value, action.label)

        reason = DataValidator.normalize_string(reason)
        if SideEffect.RECORD_REASON in transition.side_effects and not reason:
            raise ValidationError("A rejection reason is required")

        result = TransitionResult(show=show, previous=show.status, action=action)

        for effect in transition.side_effects:
            if effect is SideEffect.VERIFY_VENUES and verify_venues:
                for venue in show.venues:
                    if self.venues.verify(venue):
                        result.verified_venue_ids.append(venue.id)
            elif effect is SideEffect.CLEAR_REASON:
                show.rejection_reason = None
            elif effect is SideEffect.RECORD_REASON:
                show.rejection_reason = reason

        show.status = transition.resolve_target(show)
        self.session.flush()

        safe_logger(self.logger).log_operation(
            f"show_{action.value}",
            {
                "show_id": show.id,
                "from": result.previous.value,
                "to": show.status.value,
                "actor_id": actor.user_id,
                "verified_venues": result.verified_venue_ids,
            },
        )
        return result
