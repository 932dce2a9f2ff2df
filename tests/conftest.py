"""
conftest.py
-----------
Shared pytest fixtures for Showbook tests.

Provides fixtures for:
- Database setup and teardown
- Recording audit log, notifier and music discovery subscribers
- Actors (admin, submitter, stranger)
- Sample markdown show files
- Seeded catalog rows
"""
import pytest
import yaml
from pathlib import Path
from tempfile import TemporaryDirectory

from showbook.core.config import ShowbookConfig
from showbook.core.paths import ALEMBIC_DIR
from showbook.database.manager import ShowbookDB
from showbook.database.managers import (
    ArtistManager,
    ShowManager,
    VenueEditManager,
    VenueManager,
)
from showbook.pipeline.actor import Actor
from showbook.pipeline.events import (
    AuditLog,
    EventBus,
    MusicDiscovery,
    Notifier,
    VenueSummary,
)
from showbook.pipeline.service import ShowService


# ----- Subscriber Doubles -----

class RecordingAuditLog(AuditLog):
    """Audit log that keeps every entry in memory."""

    def __init__(self):
        self.entries = []

    def log_action(self, actor_id, action, entity_type, entity_id, metadata):
        self.entries.append(
            {
                "actor_id": actor_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "metadata": metadata,
            }
        )

    def actions(self):
        return [entry["action"] for entry in self.entries]


class RecordingNotifier(Notifier):
    """Notifier that keeps (method, kwargs) for every call."""

    def __init__(self):
        self.calls = []

    def _record(self, method, **kwargs):
        self.calls.append((method, kwargs))

    def notify_show_approved(self, show):
        self._record("notify_show_approved", show=show)

    def notify_show_rejected(self, show, reason):
        self._record("notify_show_rejected", show=show, reason=reason)

    def notify_new_show(self, show, submitter_id):
        self._record("notify_new_show", show=show, submitter_id=submitter_id)

    def notify_new_venue(self, venue, submitter_id):
        self._record("notify_new_venue", venue=venue, submitter_id=submitter_id)

    def notify_pending_venue_edit(self, edit_id, venue, submitter_id, changes):
        self._record(
            "notify_pending_venue_edit",
            edit_id=edit_id,
            venue=venue,
            submitter_id=submitter_id,
            changes=changes,
        )

    def methods(self):
        return [method for method, _ in self.calls]


class RecordingMusicDiscovery(MusicDiscovery):
    def __init__(self):
        self.artists = []

    def discover_music_for_artist(self, artist_id, name):
        self.artists.append((artist_id, name))


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_db_path(tmp_dir):
    """Path for test database."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_alembic_dir():
    """Alembic directory shipped with the package."""
    return ALEMBIC_DIR


# ----- Event Fixtures -----

@pytest.fixture
def audit_log():
    return RecordingAuditLog()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def music_discovery():
    return RecordingMusicDiscovery()


@pytest.fixture
def event_bus(audit_log, notifier, music_discovery):
    """Event bus wired to the recording subscribers."""
    return EventBus(
        audit_log=audit_log,
        notifier=notifier,
        music_discovery=music_discovery,
    )


# ----- Database Fixtures -----

@pytest.fixture
def test_db(test_db_path, test_alembic_dir, event_bus):
    """
    Create a test database instance.

    The schema is created from the ORM models on first connect.
    """
    db = ShowbookDB(
        db_path=test_db_path,
        alembic_dir=test_alembic_dir,
        event_bus=event_bus,
    )
    yield db
    db.engine.dispose()


@pytest.fixture
def db_session(test_db):
    """Create a database session for testing."""
    with test_db.session_scope() as session:
        yield session
        session.rollback()


@pytest.fixture
def venue_manager(db_session):
    return VenueManager(db_session)


@pytest.fixture
def artist_manager(db_session):
    return ArtistManager(db_session)


@pytest.fixture
def show_manager(db_session):
    return ShowManager(db_session)


@pytest.fixture
def venue_edit_manager(db_session):
    return VenueEditManager(db_session)


# ----- Pipeline Fixtures -----

@pytest.fixture
def config():
    return ShowbookConfig()


@pytest.fixture
def service(test_db, config):
    return ShowService(test_db, config=config)


@pytest.fixture
def admin():
    return Actor(user_id=1, is_admin=True)


@pytest.fixture
def user():
    return Actor(user_id=7)


@pytest.fixture
def other_user():
    return Actor(user_id=8)


@pytest.fixture
def seed_venue(test_db):
    """Factory committing a venue and returning its summary."""

    def _seed(name="Valley Bar", city="Phoenix", state="AZ", verified=False,
              submitted_by=None, **extra):
        with test_db.session_scope():
            venue, _ = test_db.venues.get_or_create(
                {"name": name, "city": city, "state": state, **extra},
                submitted_by=submitted_by,
                verified=verified,
            )
            return VenueSummary.from_venue(venue)

    return _seed


@pytest.fixture
def show_payload():
    """Direct-submission payload for a one-venue, two-artist show."""
    return {
        "title": "The Beths with Lunar Vacation",
        "event_date": "2026-03-01T03:00:00Z",
        "price": "$18",
        "age_requirement": "21+",
        "venues": [{"name": "Valley Bar", "city": "Phoenix", "state": "AZ"}],
        "artists": [{"name": "The Beths"}, {"name": "Lunar Vacation"}],
    }


# ----- Sample Markdown Content Fixtures -----

@pytest.fixture
def make_show_markdown():
    """Factory rendering a show import file."""

    def _make(title="The Beths", event_date="2026-03-01T03:00:00Z",
              venues=None, artists=None, description=None):
        show = {"title": title}
        if event_date is not None:
            show["event_date"] = event_date
        frontmatter = {
            "version": "1.0",
            "show": show,
            "venues": venues
            if venues is not None
            else [{"name": "Valley Bar", "city": "Phoenix", "state": "AZ"}],
            "artists": artists
            if artists is not None
            else [
                {"name": title, "set_type": "headliner"},
                {"name": "Lunar Vacation", "set_type": "opener"},
            ],
        }
        text = "---\n" + yaml.safe_dump(frontmatter, sort_keys=False) + "---\n"
        if description:
            text += f"\n## Description\n\n{description}\n"
        return text

    return _make


@pytest.fixture
def sample_show_markdown():
    """Complete show file with a description section."""
    return """---
version: "1.0"
exported_at: "2026-01-15T12:00:00Z"
show:
  title: The Beths at Valley Bar
  event_date: "2026-03-01T03:00:00Z"
  city: Phoenix
  state: az
  price: 18
  age_requirement: 21+
  status: approved
venues:
  - name: Valley Bar
    city: Phoenix
    state: AZ
    address: 130 N Central Ave
artists:
  - name: The Beths
    position: 0
    set_type: headliner
  - name: Lunar Vacation
    position: 1
    set_type: opener
---

## Description

Early show. Doors at 7.

## Notes

Not part of the description.
"""
