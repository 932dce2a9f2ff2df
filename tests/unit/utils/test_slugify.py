"""Tests for slug helpers."""
from datetime import datetime, timezone

from showbook.utils.slugify import (
    generate_show_slug,
    generate_unique_slug,
    generate_venue_slug,
    show_export_filename,
    slugify,
)


class TestSlugify:
    def test_basic(self):
        assert slugify("Crescent Ballroom") == "crescent-ballroom"

    def test_accents_and_symbols(self):
        assert slugify("Café Tacvba") == "cafe-tacvba"
        assert slugify("Rock & Roll Hotel") == "rock-and-roll-hotel"
        assert slugify("Mr. Bungle (reunion)") == "mr-bungle-reunion"
        assert slugify("Guns N' Roses") == "guns-n-roses"

    def test_empty(self):
        assert slugify("") == ""
        assert slugify(None) == ""

    def test_max_length_trims_trailing_dash(self):
        assert slugify("aaaa bbbb", max_length=5) == "aaaa"


class TestCompositeSlugs:
    def test_venue_slug(self):
        assert generate_venue_slug("Valley Bar", "Phoenix", "AZ") == "valley-bar-phoenix-az"

    def test_show_slug(self):
        when = datetime(2026, 3, 1, 3, 0, tzinfo=timezone.utc)
        assert generate_show_slug(when, "The Beths", "Valley Bar") == (
            "2026-03-01-the-beths-at-valley-bar"
        )

    def test_export_filename(self):
        when = datetime(2026, 3, 1, tzinfo=timezone.utc)
        assert show_export_filename(when, "The Beths at Valley Bar") == (
            "show-2026-03-01-the-beths-at-valley-bar.md"
        )
        assert show_export_filename(when, "!!!") == "show-2026-03-01-untitled.md"


class TestUniqueSlug:
    def test_free_base_returned(self):
        assert generate_unique_slug("valley-bar", lambda s: False) == "valley-bar"

    def test_suffixes_until_free(self):
        taken = {"valley-bar", "valley-bar-2"}
        assert generate_unique_slug("valley-bar", taken.__contains__) == "valley-bar-3"

    def test_empty_base(self):
        assert generate_unique_slug("", lambda s: False) == "untitled"
