#!/usr/bin/env python3
"""
venue_edit_manager.py
--------------------
Manages PendingVenueEdit rows.

Pure storage for the venue edit queue: the queue itself (showbook.pipeline
.edit_queue) decides who may propose, approve, reject or cancel.

Usage:
    edit_mgr = VenueEditManager(session, logger)
    edit = edit_mgr.create(venue, submitted_by=7, changes={"address": "824 N Central"})
"""
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from showbook.core.exceptions import PendingEditExistsError
from showbook.database.decorators import handle_db_errors, log_database_operation
from showbook.database.models import PendingVenueEdit, Venue, VenueEditStatus, utc_now
from .base_manager import BaseManager


class VenueEditManager(BaseManager):
    """Manages PendingVenueEdit table operations."""

    @handle_db_errors
    def get(self, edit_id: int) -> Optional[PendingVenueEdit]:
        return self._get_by_id(PendingVenueEdit, edit_id)

    @handle_db_errors
    def require(self, edit_id: int) -> PendingVenueEdit:
        """Retrieve an edit by id or raise NotFoundError."""
        return self._resolve_object(edit_id, PendingVenueEdit)

    @handle_db_errors
    def get_pending(self, venue_id: int, user_id: int) -> Optional[PendingVenueEdit]:
        """The pending edit a user has open on a venue, if any."""
        stmt = select(PendingVenueEdit).where(
            PendingVenueEdit.venue_id == venue_id,
            PendingVenueEdit.submitted_by == user_id,
            PendingVenueEdit.status == VenueEditStatus.PENDING,
        )
        return self.session.scalars(stmt).first()

    @handle_db_errors
    def list_pending(
        self, limit: int = 50, offset: int = 0
    ) -> Tuple[List[PendingVenueEdit], int]:
        """
        Page through pending edits, oldest first.

        Returns:
            (edits on this page, total pending edits)
        """
        base = select(PendingVenueEdit).where(
            PendingVenueEdit.status == VenueEditStatus.PENDING
        )
        total = self.session.scalar(
            select(func.count()).select_from(base.subquery())
        )
        stmt = (
            base.order_by(PendingVenueEdit.created_at, PendingVenueEdit.id)
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.scalars(stmt)), int(total or 0)

    @log_database_operation("create_venue_edit")
    def create(
        self, venue: Venue, submitted_by: int, changes: Dict[str, Any]
    ) -> PendingVenueEdit:
        """
        Store a pending edit.

        The insert runs in a SAVEPOINT so a concurrent duplicate proposal
        trips the partial unique index without aborting the caller's
        transaction.

        Raises:
            PendingEditExistsError: If the user already has a pending edit
                on this venue
        """
        if self.get_pending(venue.id, submitted_by) is not None:
            raise PendingEditExistsError(
                "You already have a pending edit for this venue"
            )
        edit = PendingVenueEdit(
            venue_id=venue.id,
            submitted_by=submitted_by,
            proposed_changes=dict(changes),
            status=VenueEditStatus.PENDING,
        )
        try:
            with self.session.begin_nested():
                self.session.add(edit)
        except IntegrityError as e:
            raise PendingEditExistsError(
                "You already have a pending edit for this venue"
            ) from e
        return edit

    @handle_db_errors
    @log_database_operation("reject_venue_edit")
    def mark_rejected(
        self, edit: PendingVenueEdit, reviewer_id: int, reason: str
    ) -> PendingVenueEdit:
        edit.status = VenueEditStatus.REJECTED
        edit.rejection_reason = reason
        edit.reviewed_by = reviewer_id
        edit.reviewed_at = utc_now()
        self.session.flush()
        return edit

    @handle_db_errors
    def delete(self, edit: PendingVenueEdit) -> None:
        self.session.delete(edit)
        self.session.flush()

