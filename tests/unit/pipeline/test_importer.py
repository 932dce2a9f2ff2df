"""
Tests for two-phase markdown import.

Each test runs against its own database file; the importer opens its own
transactions, so row counts are read back through fresh session scopes.
"""
import pytest

from showbook.core.config import BatchLimits
from showbook.core.exceptions import (
    DuplicateShowError,
    ParseError,
    UnauthorizedError,
    ValidationError,
)
from showbook.database.models import Artist, Show, ShowStatus, Venue
from showbook.pipeline.importer import (
    WARNING_MISSING_DATE,
    WARNING_NO_ARTISTS,
    WARNING_NO_VENUES,
    ShowImporter,
)

from doubles import RecordingResolver


@pytest.fixture
def importer(test_db):
    return ShowImporter(test_db)


@pytest.fixture
def count_rows(test_db):
    def _count(model):
        with test_db.session_scope() as session:
            return session.query(model).count()

    return _count


class TestPreview:
    def test_new_entities(self, importer, make_show_markdown, user, count_rows):
        preview = importer.preview(make_show_markdown(), user)

        assert preview.can_import is True
        assert preview.warnings == []
        assert preview.show["title"] == "The Beths"
        assert [(v.name, v.will_create, v.existing_id) for v in preview.venues] == [
            ("Valley Bar", True, None)
        ]
        assert [(a.name, a.position, a.set_type, a.will_create) for a in preview.artists] == [
            ("The Beths", 0, "headliner", True),
            ("Lunar Vacation", 1, "opener", True),
        ]
        assert count_rows(Venue) == 0
        assert count_rows(Artist) == 0

    def test_existing_venue_matched(self, importer, make_show_markdown, user, seed_venue):
        venue = seed_venue(name="VALLEY BAR")

        preview = importer.preview(make_show_markdown(), user)

        assert preview.venues[0].will_create is False
        assert preview.venues[0].existing_id == venue.id
        assert preview.venues[0].name == "VALLEY BAR"

    @pytest.mark.parametrize("kwargs,warning", [
        ({"event_date": None}, WARNING_MISSING_DATE),
        ({"venues": []}, WARNING_NO_VENUES),
        ({"artists": []}, WARNING_NO_ARTISTS),
    ])
    def test_blocking_warnings(self, importer, make_show_markdown, user, kwargs, warning):
        preview = importer.preview(make_show_markdown(**kwargs), user)

        assert preview.can_import is False
        assert warning in preview.warnings

    def test_unreadable_date_reported(self, importer, make_show_markdown, user):
        preview = importer.preview(make_show_markdown(event_date="soon"), user)

        assert preview.warnings == ["Unreadable event date 'soon'", WARNING_MISSING_DATE]
        assert preview.can_import is False

    def test_incomplete_venue_blocks(self, importer, make_show_markdown, user):
        preview = importer.preview(make_show_markdown(venues=[{"name": "Valley Bar"}]), user)

        assert preview.can_import is False
        assert preview.warnings == ["Venue 'Valley Bar' is missing city or state"]
        assert preview.venues[0].will_create is False

    def test_booked_headliner_blocks(self, importer, make_show_markdown, user):
        importer.confirm(make_show_markdown(), user)

        preview = importer.preview(make_show_markdown(), user)

        assert preview.can_import is False
        assert preview.warnings == [
            "Headliner 'The Beths' already has a show at 'Valley Bar' on this date"
        ]

    def test_requires_identity(self, importer, make_show_markdown):
        with pytest.raises(UnauthorizedError):
            importer.preview(make_show_markdown(), None)

    def test_parse_error_propagates(self, importer, user):
        with pytest.raises(ParseError):
            importer.preview("no frontmatter here", user)


class TestConfirm:
    def test_user_import(self, importer, make_show_markdown, user, count_rows, notifier, music_discovery):
        result = importer.confirm(make_show_markdown(description="Doors at 7"), user)

        assert result.show.status == ShowStatus.PENDING.value
        assert result.show.submitted_by == 7
        assert result.show.artists == ["The Beths", "Lunar Vacation"]
        assert len(result.new_venue_ids) == 1
        assert len(result.new_artist_ids) == 2
        assert count_rows(Show) == 1

        assert notifier.methods() == ["notify_new_show", "notify_new_venue"]
        assert [name for _, name in music_discovery.artists] == ["The Beths", "Lunar Vacation"]

    def test_admin_import_is_approved(self, importer, make_show_markdown, admin):
        result = importer.confirm(make_show_markdown(), admin)
        assert result.show.status == ShowStatus.APPROVED.value

    def test_confirm_matches_entities_created_after_preview(
        self, importer, make_show_markdown, user, seed_venue
    ):
        content = make_show_markdown()
        preview = importer.preview(content, user)
        assert preview.venues[0].will_create is True

        seed_venue()
        result = importer.confirm(content, user)

        assert result.new_venue_ids == []

    def test_incomplete_file_writes_nothing(self, importer, make_show_markdown, user, count_rows, notifier):
        with pytest.raises(ValidationError):
            importer.confirm(make_show_markdown(artists=[]), user)

        assert count_rows(Venue) == 0
        assert notifier.calls == []

    def test_duplicate_rolls_back_new_entities(self, importer, make_show_markdown, user, count_rows):
        importer.confirm(make_show_markdown(), user)

        with pytest.raises(DuplicateShowError):
            importer.confirm(
                make_show_markdown(
                    artists=[{"name": "The Beths", "set_type": "headliner"}, {"name": "Girlpool"}]
                ),
                user,
            )

        assert count_rows(Show) == 1
        assert count_rows(Artist) == 2


class TestBulk:
    def test_preview_summary(self, importer, make_show_markdown, user):
        result = importer.preview_bulk([make_show_markdown(), "garbage"], user)

        summary = result.summary
        assert summary.total_shows == 2
        assert (summary.new_venues, summary.existing_venues) == (1, 0)
        assert (summary.new_artists, summary.existing_artists) == (2, 0)
        assert summary.warning_count == 1
        assert summary.can_import_all is False
        assert result.previews[1].warnings[0].startswith("Show 2: ")

    def test_confirm_partial_failure(self, importer, make_show_markdown, user, count_rows):
        result = importer.confirm_bulk(
            [
                make_show_markdown(),
                make_show_markdown(),
                make_show_markdown(title="Girlpool"),
            ],
            user,
        )

        assert [item.success for item in result.results] == [True, False, True]
        assert "already has a show" in result.results[1].error
        assert (result.success_count, result.error_count) == (2, 1)
        assert count_rows(Show) == 2

    def test_empty_batch(self, importer, user):
        with pytest.raises(ValidationError):
            importer.confirm_bulk([], user)

    def test_batch_cap(self, test_db, make_show_markdown, user):
        importer = ShowImporter(test_db, limits=BatchLimits(bulk_import=2))
        with pytest.raises(ValidationError, match="Maximum 2"):
            importer.preview_bulk([make_show_markdown()] * 3, user)


class TestInjectedResolver:
    def test_preview_resolves_read_only(self, test_db, make_show_markdown, user, count_rows):
        resolver = RecordingResolver()
        importer = ShowImporter(test_db, resolver_factory=resolver.factory)

        importer.preview(make_show_markdown(), user)

        assert {(kind, name) for kind, name, _ in resolver.calls} == {
            ("venue", "Valley Bar"),
            ("artist", "The Beths"),
            ("artist", "Lunar Vacation"),
        }
        assert resolver.read_only_calls() == resolver.calls
        assert count_rows(Venue) == 0

    def test_confirm_resolves_through_same_resolver(self, test_db, make_show_markdown, user):
        resolver = RecordingResolver()
        importer = ShowImporter(test_db, resolver_factory=resolver.factory)

        importer.confirm(make_show_markdown(), user)

        assert len(resolver.calls) == 3
        assert resolver.read_only_calls() == []

    def test_resolver_failure_rolls_back(self, test_db, make_show_markdown, user, count_rows):
        resolver = RecordingResolver(fail_on=["Lunar Vacation"])
        importer = ShowImporter(test_db, resolver_factory=resolver.factory)

        with pytest.raises(ValidationError):
            importer.confirm(make_show_markdown(), user)

        assert count_rows(Show) == 0
        assert count_rows(Venue) == 0
        assert count_rows(Artist) == 0
