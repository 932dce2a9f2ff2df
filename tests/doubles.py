"""
doubles.py
----------
Stand-ins for the pipeline components ShowService, ShowImporter and
DiscoveryImporter build per transaction.

Each double is handed to the code under test through its ``factory``
method, which has the (session, logger) signature the pipeline expects,
and keeps what it saw across transactions.
"""
from showbook.core.exceptions import ValidationError
from showbook.database.models import Venue
from showbook.pipeline.edit_queue import EDIT_STATUS_PENDING, EditOutcome, EditQueue
from showbook.pipeline.lifecycle import ShowStateMachine, TransitionResult
from showbook.pipeline.resolver import CatalogResolver, EntityResolver


class RecordingResolver(EntityResolver):
    """Resolves through the catalog and records every request."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = {name.lower() for name in fail_on}
        self._catalog = None

    def factory(self, session, logger=None):
        self._catalog = CatalogResolver(session, logger)
        return self

    def resolve_venue(self, spec, is_admin=False, submitted_by=None, read_only=False):
        self.calls.append(("venue", spec.name or spec.id, read_only))
        return self._catalog.resolve_venue(
            spec, is_admin=is_admin, submitted_by=submitted_by, read_only=read_only
        )

    def resolve_artist(self, spec, read_only=False):
        self.calls.append(("artist", spec.name or spec.id, read_only))
        if spec.name and spec.name.lower() in self.fail_on:
            raise ValidationError(f"Artist '{spec.name}' cannot be resolved")
        return self._catalog.resolve_artist(spec, read_only=read_only)

    def read_only_calls(self):
        return [call for call in self.calls if call[2]]


class ScriptedLifecycle(ShowStateMachine):
    """
    Records each action and reports the scripted venues as verified,
    leaving the show untouched.
    """

    def __init__(self, verified_venue_ids=()):
        self.verified_venue_ids = list(verified_venue_ids)
        self.calls = []

    def factory(self, session, logger=None):
        return self

    def apply(self, show, action, actor, reason=None, verify_venues=False):
        self.calls.append((show.id, action, reason, verify_venues))
        return TransitionResult(
            show=show,
            previous=show.status,
            action=action,
            verified_venue_ids=list(self.verified_venue_ids),
        )


class InMemoryEditQueue(EditQueue):
    """Edit queue that queues every proposal without touching the venue."""

    def __init__(self):
        self.proposals = []
        self.cancelled = []

    def factory(self, session, logger=None):
        return self

    def propose_edit(self, venue_id, actor, changes):
        self.proposals.append((venue_id, actor.user_id if actor else None, dict(changes)))
        return EditOutcome(status=EDIT_STATUS_PENDING, venue=Venue(id=venue_id))

    def approve_edit(self, edit_id, reviewer):
        raise NotImplementedError

    def reject_edit(self, edit_id, reviewer, reason):
        raise NotImplementedError

    def cancel_edit(self, edit_id, actor):
        self.cancelled.append(edit_id)

    def get_pending_edit_for_venue(self, venue_id, user_id):
        return None

    def list_pending_edits(self, limit=50, offset=0):
        return [], len(self.proposals)
