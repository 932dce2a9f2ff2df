#!/usr/bin/env python3
"""
edit_queue.py
--------------------
Queue of proposed venue changes awaiting admin review.

Venues are shared by every show booked there, so a non-admin cannot
change one directly. Their edit is stored as a PendingVenueEdit holding
the field diff; an admin later approves it (diff applied, row deleted) or
rejects it (row kept, marked rejected). Admin edits skip the queue.

A user has at most one pending edit per venue. The check runs first, and
a partial unique index backs it up for concurrent proposals.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

# --- Third party imports ---
from sqlalchemy.orm import Session

# --- Local imports ---
from showbook.core.exceptions import (
    ConflictError,
    ForbiddenError,
    ValidationError,
)
from showbook.core.logging_manager import ShowbookLogger
from showbook.core.validators import DataValidator
from showbook.database.decorators import DatabaseOperation
from showbook.database.managers import VenueEditManager, VenueManager
from showbook.database.models import PendingVenueEdit, Venue, VenueEditStatus
from .actor import Actor, require_admin, require_identity
from .events import AuditEvent, NotificationEvent, VenueSummary, emit

EDIT_STATUS_UPDATED = "updated"
EDIT_STATUS_PENDING = "pending"


@dataclass
class EditOutcome:
    """
    Result of proposing a venue edit.

    Attributes:
        status: "updated" (admin, applied now) or "pending" (queued)
        venue: The venue (already updated when status is "updated")
        edit: The queued edit when status is "pending"
        changed_fields: Fields the admin edit changed
    """

    status: str
    venue: Venue
    edit: Optional[PendingVenueEdit] = None
    changed_fields: Tuple[str, ...] = ()

    @property
    def is_pending(self) -> bool:
        return self.status == EDIT_STATUS_PENDING


class EditQueue(ABC):
    """Moderated changes to shared venues."""

    @abstractmethod
    def propose_edit(
        self, venue_id: int, actor: Optional[Actor], changes: Mapping[str, Any]
    ) -> EditOutcome: ...

    @abstractmethod
    def approve_edit(self, edit_id: int, reviewer: Optional[Actor]) -> Venue: ...

    @abstractmethod
    def reject_edit(
        self, edit_id: int, reviewer: Optional[Actor], reason: Optional[str]
    ) -> PendingVenueEdit: ...

    @abstractmethod
    def cancel_edit(self, edit_id: int, actor: Optional[Actor]) -> None: ...

    @abstractmethod
    def get_pending_edit_for_venue(
        self, venue_id: int, user_id: int
    ) -> Optional[PendingVenueEdit]: ...

    @abstractmethod
    def list_pending_edits(
        self, limit: int = 50, offset: int = 0
    ) -> Tuple[List[PendingVenueEdit], int]: ...


EditQueueFactory = Callable[[Session, Optional[ShowbookLogger]], EditQueue]


class VenueEditQueue(EditQueue):
    """Edit queue over the venue and pending-edit tables of one session."""

    def __init__(self, session: Session, logger: Optional[ShowbookLogger] = None) -> None:
        self.session = session
        self.logger = logger
        self.venues = VenueManager(session, logger)
        self.edits = VenueEditManager(session, logger)

    def propose_edit(
        self, venue_id: int, actor: Optional[Actor], changes: Mapping[str, Any]
    ) -> EditOutcome:
        """
        Edit a venue directly (admin) or queue the edit for review.

        Raises:
            UnauthorizedError: No identity
            ValidationError: Empty diff, unknown fields, blanked name/city/state
            NotFoundError: Unknown venue
            ForbiddenError: Non-admin who did not submit the venue
            PendingEditExistsError: The user already has a pending edit here
        """
        actor = require_identity(actor)
        changes = dict(changes or {})
        VenueManager.validate_changes(changes)
        venue = self.venues.require(venue_id)

        if actor.is_admin:
            with DatabaseOperation(self.logger, "admin_venue_edit"):
                changed = self.venues.apply_changes(venue, changes)
            return EditOutcome(EDIT_STATUS_UPDATED, venue, changed_fields=tuple(changed))

        if venue.submitted_by != actor.user_id:
            raise ForbiddenError("Only the venue's submitter may propose edits")

        with DatabaseOperation(self.logger, "propose_venue_edit"):
            edit = self.edits.create(venue, actor.user_id, _normalize_changes(changes))

        emit(
            self.session,
            NotificationEvent(
                "notify_pending_venue_edit",
                {
                    "edit_id": edit.id,
                    "venue": VenueSummary.from_venue(venue),
                    "submitter_id": actor.user_id,
                    "changes": dict(edit.proposed_changes),
                },
            ),
        )
        return EditOutcome(EDIT_STATUS_PENDING, venue, edit=edit)

    def approve_edit(self, edit_id: int, reviewer: Optional[Actor]) -> Venue:
        """
        Apply a pending edit to its venue and delete the edit.

        Raises:
            ForbiddenError: Reviewer is not an admin
            NotFoundError: Unknown edit
            ConflictError: Edit is no longer pending
        """
        reviewer = require_admin(reviewer, "approve venue edits")
        edit = self._require_pending(edit_id)
        venue = edit.venue

        with DatabaseOperation(self.logger, "approve_venue_edit"):
            changed = self.venues.apply_changes(venue, dict(edit.proposed_changes))
            self.edits.delete(edit)

        emit(
            self.session,
            AuditEvent(
                reviewer.user_id,
                "approve_venue_edit",
                "venue",
                venue.id,
                {"edit_id": edit_id, "submitted_by": edit.submitted_by, "changed": changed},
            ),
        )
        return venue

    def reject_edit(
        self, edit_id: int, reviewer: Optional[Actor], reason: Optional[str]
    ) -> PendingVenueEdit:
        """
        Mark a pending edit rejected; the row stays for the record.

        Raises:
            ForbiddenError: Reviewer is not an admin
            ValidationError: No reason given
            NotFoundError: Unknown edit
            ConflictError: Edit is no longer pending
        """
        reviewer = require_admin(reviewer, "reject venue edits")
        reason = DataValidator.normalize_string(reason)
        if not reason:
            raise ValidationError("A rejection reason is required")
        edit = self._require_pending(edit_id)

        self.edits.mark_rejected(edit, reviewer.user_id, reason)
        emit(
            self.session,
            AuditEvent(
                reviewer.user_id,
                "reject_venue_edit",
                "venue",
                edit.venue_id,
                {"edit_id": edit.id, "reason": reason},
            ),
        )
        return edit

    def cancel_edit(self, edit_id: int, actor: Optional[Actor]) -> None:
        """
        Withdraw one's own edit before it is reviewed.

        Raises:
            UnauthorizedError: No identity
            NotFoundError: Unknown edit
            ForbiddenError: Caller did not propose the edit
            ConflictError: Edit was already reviewed
        """
        actor = require_identity(actor)
        edit = self.edits.require(edit_id)
        if edit.submitted_by != actor.user_id:
            raise ForbiddenError("Only the proposer may cancel a venue edit")
        if edit.is_reviewed:
            raise ConflictError(
                f"Venue edit {edit_id} was already {edit.status.value} and cannot be cancelled"
            )
        self.edits.delete(edit)

    def get_pending_edit_for_venue(
        self, venue_id: int, user_id: int
    ) -> Optional[PendingVenueEdit]:
        return self.edits.get_pending(venue_id, user_id)

    def list_pending_edits(
        self, limit: int = 50, offset: int = 0
    ) -> Tuple[List[PendingVenueEdit], int]:
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        return self.edits.list_pending(limit=limit, offset=offset)

    def _require_pending(self, edit_id: int) -> PendingVenueEdit:
        edit = self.edits.require(edit_id)
        if edit.status != VenueEditStatus.PENDING:
            raise ConflictError(
                f"Venue edit {edit_id} is already {edit.status.value}"
            )
        return edit


def _normalize_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Trim string values so the stored diff matches what approval applies."""
    normalized: Dict[str, Any] = {}
    for key, value in changes.items():
        if key == "state":
            normalized[key] = DataValidator.normalize_state(value)
        elif isinstance(value, str) or value is None:
            normalized[key] = DataValidator.normalize_string(value)
        else:
            normalized[key] = value
    return normalized
