"""Tests for venue and artist resolution."""
import pytest

from showbook.core.exceptions import NotFoundError, ValidationError
from showbook.database.models import Artist, Venue
from showbook.pipeline.resolver import ArtistSpec, CatalogResolver, VenueSpec


@pytest.fixture
def resolver(db_session):
    return CatalogResolver(db_session)


def _count(session, model):
    return session.query(model).count()


class TestSpecs:
    def test_venue_spec_collects_social_links(self):
        spec = VenueSpec.from_mapping(
            {
                "name": "Valley Bar",
                "city": "Phoenix",
                "state": "AZ",
                "instagram": "@valleybarphx",
                "social": {"website": "https://valleybar.com"},
            }
        )

        assert spec.social == {"website": "https://valleybar.com", "instagram": "@valleybarphx"}
        assert spec.as_metadata()["instagram"] == "@valleybarphx"

    def test_artist_spec_aliases_and_billing(self):
        spec = ArtistSpec.from_mapping(
            {
                "name": "The Beths",
                "bandcamp_url": "thebeths.bandcamp.com",
                "is_headliner": "yes",
                "position": "0",
            }
        )

        assert spec.social == {"bandcamp": "thebeths.bandcamp.com"}
        assert spec.is_headliner is True
        assert spec.position == 0


class TestResolveVenue:
    def test_creates_then_matches(self, resolver, db_session):
        first = resolver.resolve_venue(
            VenueSpec(name="Valley Bar", city="Phoenix", state="AZ"), submitted_by=7
        )
        second = resolver.resolve_venue(
            VenueSpec(name="valley bar", city="phoenix", state="az")
        )

        assert first.was_created is True
        assert first.existing_id is None
        assert second.was_created is False
        assert second.existing_id == first.entity.id
        assert _count(db_session, Venue) == 1

    def test_match_is_never_updated(self, resolver):
        created = resolver.resolve_venue(VenueSpec(name="Valley Bar", city="Phoenix", state="AZ"))

        matched = resolver.resolve_venue(
            VenueSpec(name="Valley Bar", city="Phoenix", state="AZ", address="Elsewhere"),
            is_admin=True,
        )

        assert matched.entity is created.entity
        assert matched.entity.address is None
        assert matched.entity.verified is False

    def test_admin_created_venue_is_verified(self, resolver):
        result = resolver.resolve_venue(
            VenueSpec(name="Valley Bar", city="Phoenix", state="AZ"), is_admin=True
        )
        assert result.entity.verified is True

    def test_by_id(self, resolver):
        created = resolver.resolve_venue(VenueSpec(name="Valley Bar", city="Phoenix", state="AZ"))

        assert resolver.resolve_venue(VenueSpec(id=created.entity.id)).entity is created.entity
        with pytest.raises(NotFoundError):
            resolver.resolve_venue(VenueSpec(id=404))

    @pytest.mark.parametrize("spec", [
        VenueSpec(name="Valley Bar", city="Phoenix"),
        VenueSpec(city="Phoenix", state="AZ"),
        VenueSpec(name=" ", city="Phoenix", state="AZ"),
    ])
    def test_incomplete_spec_rejected(self, resolver, spec):
        with pytest.raises(ValidationError):
            resolver.resolve_venue(spec)

    def test_read_only_does_not_write(self, resolver, db_session):
        result = resolver.resolve_venue(
            VenueSpec(name="Valley Bar", city="Phoenix", state="az", address="130 N Central"),
            is_admin=True,
            read_only=True,
        )

        assert result.was_created is True
        assert result.entity.id is None
        assert result.entity.state == "AZ"
        assert result.entity.verified is True
        assert result.entity not in db_session
        assert _count(db_session, Venue) == 0

    def test_read_only_finds_existing(self, resolver):
        created = resolver.resolve_venue(VenueSpec(name="Valley Bar", city="Phoenix", state="AZ"))
        result = resolver.resolve_venue(
            VenueSpec(name="VALLEY BAR", city="Phoenix", state="AZ"), read_only=True
        )
        assert result.was_created is False
        assert result.entity is created.entity


class TestResolveArtist:
    def test_creates_then_matches(self, resolver, db_session):
        first = resolver.resolve_artist(ArtistSpec(name="The Beths"))
        second = resolver.resolve_artist(ArtistSpec(name="the beths"))

        assert first.was_created is True
        assert second.was_created is False
        assert second.entity is first.entity
        assert _count(db_session, Artist) == 1

    def test_read_only_does_not_write(self, resolver, db_session):
        result = resolver.resolve_artist(ArtistSpec(name="The Beths"), read_only=True)

        assert result.was_created is True
        assert result.entity.name == "The Beths"
        assert _count(db_session, Artist) == 0

    def test_missing_name_rejected(self, resolver):
        with pytest.raises(ValidationError):
            resolver.resolve_artist(ArtistSpec(name=""))

    def test_unknown_id(self, resolver):
        with pytest.raises(NotFoundError):
            resolver.resolve_artist(ArtistSpec(id=404))


class TestNonAsciiNames:
    def test_artist_matched_on_second_resolve(self, resolver, db_session):
        first = resolver.resolve_artist(ArtistSpec(name="MØ"))
        second = resolver.resolve_artist(ArtistSpec(name="mø"))

        assert second.was_created is False
        assert second.entity is first.entity
        assert _count(db_session, Artist) == 1

    def test_venue_matched_on_second_resolve(self, resolver, db_session):
        first = resolver.resolve_venue(VenueSpec(name="CAFÉ LOUNGE", city="Phoenix", state="AZ"))
        second = resolver.resolve_venue(VenueSpec(name="Café Lounge", city="PHOENIX", state="az"))

        assert second.was_created is False
        assert second.existing_id == first.entity.id
        assert _count(db_session, Venue) == 1
