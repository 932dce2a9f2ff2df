"""
Tests for ShowManager.

Shows are built the way the assembler builds them: create the row, attach
venues and the bill, then assign the slug.
"""
import pytest
from datetime import datetime, timezone

from showbook.core.exceptions import NotFoundError, ValidationError
from showbook.database.models import SetType, ShowArtist, ShowSource, ShowStatus

MARCH_1 = datetime(2026, 3, 1, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def valley_bar(venue_manager):
    venue, _ = venue_manager.get_or_create(
        {"name": "Valley Bar", "city": "Phoenix", "state": "AZ"}
    )
    return venue


@pytest.fixture
def make_show(show_manager, artist_manager, valley_bar):
    """Factory building a complete show with a headliner and optional openers."""

    def _make(headliner="The Beths", openers=(), when=MARCH_1, venue=None,
              status=ShowStatus.PENDING, **fields):
        show = show_manager.create(
            {"title": headliner, "event_date": when, "status": status, **fields}
        )
        show_manager.set_venues(show, [venue or valley_bar])
        billing = [(artist_manager.get_or_create({"name": headliner})[0], SetType.HEADLINER)]
        for name in openers:
            billing.append((artist_manager.get_or_create({"name": name})[0], SetType.OPENER))
        show_manager.set_artists(show, billing)
        show_manager.assign_slug(show)
        return show

    return _make


class TestCreate:
    def test_defaults(self, show_manager):
        show = show_manager.create({"title": "The Beths", "event_date": "2026-03-01T03:00:00Z"})

        assert show.id is not None
        assert show.status == ShowStatus.PENDING
        assert show.source == ShowSource.USER
        assert show.event_date == MARCH_1
        assert show.slug is None

    def test_optional_fields_normalized(self, show_manager):
        show = show_manager.create(
            {
                "title": "  The   Beths ",
                "event_date": MARCH_1,
                "state": "az",
                "price": "$18.50",
                "age_requirement": "21+",
            }
        )

        assert show.title == "The Beths"
        assert show.state == "AZ"
        assert show.price == 18.5
        assert show.age_requirement == "21+"

    @pytest.mark.parametrize("metadata", [
        {"event_date": MARCH_1},
        {"title": "The Beths"},
        {"title": " ", "event_date": MARCH_1},
    ])
    def test_title_and_date_required(self, show_manager, metadata):
        with pytest.raises(ValidationError):
            show_manager.create(metadata)


class TestAssociations:
    def test_bill_positions_and_headliner(self, make_show):
        show = make_show(openers=["Lunar Vacation", "Girlpool"])

        assert [a.name for a in show.artists] == ["The Beths", "Lunar Vacation", "Girlpool"]
        assert [link.position for link in show.artist_links] == [0, 1, 2]
        assert show.headliner.name == "The Beths"

    def test_repeated_artist_keeps_first_slot(self, show_manager, artist_manager, make_show):
        show = make_show(openers=["Lunar Vacation"])
        beths = artist_manager.find("The Beths")
        lunar = artist_manager.find("Lunar Vacation")

        show_manager.set_artists(
            show, [(lunar, SetType.HEADLINER), (beths, SetType.OPENER), (lunar, SetType.OPENER)]
        )

        assert [(link.artist.name, link.set_type) for link in show.artist_links] == [
            ("Lunar Vacation", SetType.HEADLINER),
            ("The Beths", SetType.OPENER),
        ]

    def test_replacing_bill_removes_old_links(self, show_manager, artist_manager, make_show, db_session):
        show = make_show(openers=["Lunar Vacation"])
        girlpool, _ = artist_manager.get_or_create({"name": "Girlpool"})

        show_manager.set_artists(show, [(girlpool, SetType.HEADLINER)])

        links = db_session.query(ShowArtist).filter_by(show_id=show.id).all()
        assert [link.artist_id for link in links] == [girlpool.id]

    def test_repeated_venue_dropped(self, show_manager, valley_bar, make_show):
        show = make_show()
        show_manager.set_venues(show, [valley_bar, valley_bar])
        assert show.venues == [valley_bar]

    def test_empty_lists_rejected(self, show_manager, make_show):
        show = make_show()
        with pytest.raises(ValidationError):
            show_manager.set_venues(show, [])
        with pytest.raises(ValidationError):
            show_manager.set_artists(show, [])


class TestSlugs:
    def test_slug_from_date_headliner_venue(self, make_show):
        show = make_show()
        assert show.slug == "2026-03-01-the-beths-at-valley-bar"

    def test_same_slug_gets_suffix(self, make_show):
        make_show(status=ShowStatus.REJECTED)
        second = make_show()
        assert second.slug == "2026-03-01-the-beths-at-valley-bar-2"

    def test_reassigning_keeps_own_slug(self, show_manager, make_show):
        show = make_show()
        assert show_manager.assign_slug(show) == "2026-03-01-the-beths-at-valley-bar"


class TestDuplicateLookups:
    def test_headliner_same_utc_day(self, show_manager, make_show):
        show = make_show()

        found = show_manager.find_headliner_show(
            "the beths", "VALLEY BAR", datetime(2026, 3, 1, 23, 59, tzinfo=timezone.utc)
        )

        assert found.id == show.id

    def test_non_ascii_headliner(self, show_manager, make_show):
        show = make_show(headliner="MØ")
        assert show_manager.find_headliner_show("mø", "Valley Bar", MARCH_1).id == show.id

    def test_other_day_not_found(self, show_manager, make_show):
        make_show()
        assert show_manager.find_headliner_show(
            "The Beths", "Valley Bar", datetime(2026, 3, 2, 0, 0, tzinfo=timezone.utc)
        ) is None

    def test_opener_does_not_count(self, show_manager, make_show):
        make_show(openers=["Lunar Vacation"])
        assert show_manager.find_headliner_show("Lunar Vacation", "Valley Bar", MARCH_1) is None

    def test_excluded_statuses_and_show(self, show_manager, make_show):
        show = make_show(status=ShowStatus.REJECTED)

        assert show_manager.find_headliner_show(
            "The Beths", "Valley Bar", MARCH_1, exclude_statuses=[ShowStatus.REJECTED]
        ) is None
        assert show_manager.find_headliner_show(
            "The Beths", "Valley Bar", MARCH_1, exclude_show_id=show.id
        ) is None

    def test_soft_deleted_not_found(self, show_manager, make_show):
        show = make_show()
        show_manager.soft_delete(show, deleted_by=1)
        assert show_manager.find_headliner_show("The Beths", "Valley Bar", MARCH_1) is None

    def test_rejected_on_day(self, show_manager, valley_bar, make_show):
        assert show_manager.find_rejected_on_day(valley_bar, MARCH_1) is None
        rejected = make_show(headliner="Girlpool", status=ShowStatus.REJECTED)

        found = show_manager.find_rejected_on_day(
            valley_bar, datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)
        )

        assert found.id == rejected.id

    def test_find_by_source_includes_deleted(self, show_manager, make_show):
        show = make_show(
            source=ShowSource.DISCOVERY, source_venue="valley-bar", source_event_id="evt-1"
        )
        show_manager.soft_delete(show)

        assert show_manager.find_by_source("valley-bar", "evt-1").id == show.id
        assert show_manager.find_by_source("valley-bar", "evt-2") is None


class TestLookupAndUpdate:
    def test_update_fields_reports_changes(self, show_manager, make_show):
        show = make_show(price=18)

        changed = show_manager.update_fields(show, {"price": "18", "description": "Doors at 7"})

        assert changed == ["description"]

    @pytest.mark.parametrize("updates", [{"status": "approved"}, {"title": ""}, {"event_date": None}])
    def test_update_fields_rejects(self, show_manager, make_show, updates):
        show = make_show()
        with pytest.raises(ValidationError):
            show_manager.update_fields(show, updates)


class TestDelete:
    def test_soft_delete_hides_show(self, show_manager, make_show):
        show = make_show()

        show_manager.soft_delete(show, deleted_by=1, reason="duplicate")

        assert show_manager.get(show.id) is None
        assert show_manager.get(show.id, include_deleted=True).deletion_reason == "duplicate"
        with pytest.raises(NotFoundError):
            show_manager.require(show.id)

    def test_hard_delete_removes_links(self, show_manager, venue_manager, valley_bar, make_show, db_session):
        show = make_show(openers=["Lunar Vacation"])
        show_id = show.id

        show_manager.hard_delete(show)

        assert show_manager.get(show_id, include_deleted=True) is None
        assert db_session.query(ShowArtist).filter_by(show_id=show_id).count() == 0
        assert venue_manager.show_count(valley_bar) == 0
