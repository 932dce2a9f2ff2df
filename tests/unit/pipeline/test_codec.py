"""
Tests for the markdown show format.

Parsing covers frontmatter shape errors and the description section;
export is checked by reading its own output back.
"""
import pytest
import yaml
from datetime import datetime, timezone

from showbook.core.exceptions import ParseError
from showbook.pipeline.actor import Actor
from showbook.pipeline.assembler import CatalogShowAssembler, ShowRequest
from showbook.pipeline.codec import FORMAT_VERSION, MarkdownShowCodec

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def codec():
    return MarkdownShowCodec(clock=lambda: FIXED_NOW)


@pytest.fixture
def exported_show(db_session, show_payload):
    payload = {
        **show_payload,
        "description": "Early show.\n\nDoors at 7.",
        "venues": [
            {
                "name": "Valley Bar",
                "city": "Phoenix",
                "state": "AZ",
                "address": "130 N Central Ave",
                "instagram": "@valleybarphx",
            }
        ],
    }
    assembler = CatalogShowAssembler(db_session)
    return assembler.create(ShowRequest.from_mapping(payload), Actor.admin(1)).show


class TestParse:
    def test_full_file(self, codec, sample_show_markdown):
        parsed = codec.parse(sample_show_markdown)

        assert parsed.title == "The Beths at Valley Bar"
        assert parsed.event_date == datetime(2026, 3, 1, 3, tzinfo=timezone.utc)
        assert parsed.state == "AZ"
        assert parsed.price == 18.0
        assert parsed.status == "approved"
        assert parsed.version == "1.0"
        assert parsed.exported_at == datetime(2026, 1, 15, 12, tzinfo=timezone.utc)
        assert parsed.description == "Early show. Doors at 7."
        assert parsed.problems == []
        assert [v.name for v in parsed.venues] == ["Valley Bar"]
        assert parsed.venues[0].address == "130 N Central Ave"
        assert [(a.name, a.position, a.set_type) for a in parsed.artists] == [
            ("The Beths", 0, "headliner"),
            ("Lunar Vacation", 1, "opener"),
        ]

    def test_bytes_and_bom(self, codec, sample_show_markdown):
        parsed = codec.parse(("\ufeff" + sample_show_markdown).encode("utf-8"))
        assert parsed.title == "The Beths at Valley Bar"

    def test_positions_default_to_file_order(self, codec, make_show_markdown):
        parsed = codec.parse(
            make_show_markdown(artists=[{"name": "A"}, {"name": "B", "position": 5}, {"name": "C"}])
        )
        assert [a.position for a in parsed.artists] == [0, 5, 2]

    def test_description_falls_back_to_frontmatter(self, codec):
        parsed = codec.parse("---\nshow:\n  title: X\n  description: From frontmatter\n---\n")
        assert parsed.description == "From frontmatter"

    def test_bad_date_is_a_problem_not_an_error(self, codec, make_show_markdown):
        parsed = codec.parse(make_show_markdown(event_date="next friday"))

        assert parsed.event_date is None
        assert parsed.problems == ["Unreadable event date 'next friday'"]

    def test_missing_sections_parse_empty(self, codec):
        parsed = codec.parse("---\nversion: '1.0'\n---\n")

        assert parsed.title is None
        assert parsed.venues == []
        assert parsed.artists == []

    @pytest.mark.parametrize("content,message", [
        ("show:\n  title: X\n", "opening"),
        ("---\nshow:\n  title: X\n", "closing"),
        ("---\nshow: [unclosed\n---\n", "Invalid YAML"),
        ("---\n- just\n- a list\n---\n", "mapping"),
        ("---\nshow: The Beths\n---\n", "'show' must be a mapping"),
        ("---\nvenues: Valley Bar\n---\n", "'venues' must be a list"),
        ("---\nartists:\n  - The Beths\n---\n", "'artists' must be a list"),
    ])
    def test_malformed(self, codec, content, message):
        with pytest.raises(ParseError, match=message):
            codec.parse(content)

    def test_invalid_utf8(self, codec):
        with pytest.raises(ParseError, match="UTF-8"):
            codec.parse(b"---\nshow:\n  title: \xff\n---\n")


class TestExport:
    def test_filename(self, codec, exported_show):
        _, filename = codec.export(exported_show)
        assert filename == "show-2026-03-01-the-beths-with-lunar-vacation.md"

    def test_frontmatter(self, codec, exported_show):
        content, _ = codec.export(exported_show)
        text = content.decode("utf-8")
        frontmatter = yaml.safe_load(text.split("---\n")[1])

        assert frontmatter["version"] == FORMAT_VERSION
        assert frontmatter["exported_at"] == "2026-01-15T12:00:00Z"
        assert frontmatter["show"]["event_date"] == "2026-03-01T03:00:00Z"
        assert frontmatter["show"]["status"] == "approved"
        assert frontmatter["venues"] == [
            {
                "name": "Valley Bar",
                "city": "Phoenix",
                "state": "AZ",
                "address": "130 N Central Ave",
                "social": {"instagram": "@valleybarphx"},
            }
        ]
        assert frontmatter["artists"][0] == {"name": "The Beths", "position": 0, "set_type": "headliner"}
        assert "## Description\n\nEarly show.\n\nDoors at 7.\n" in text

    def test_reads_back(self, codec, exported_show):
        content, _ = codec.export(exported_show)

        parsed = codec.parse(content)

        assert parsed.title == exported_show.title
        assert parsed.event_date == exported_show.event_date
        assert parsed.description == "Early show.\n\nDoors at 7."
        assert [(v.name, v.city, v.state) for v in parsed.venues] == [("Valley Bar", "Phoenix", "AZ")]
        assert [(a.name, a.set_type) for a in parsed.artists] == [
            ("The Beths", "headliner"),
            ("Lunar Vacation", "opener"),
        ]
        assert parsed.to_request().artists[1].position == 1

    def test_no_description_section_when_empty(self, codec, exported_show):
        exported_show.description = None
        content, _ = codec.export(exported_show)
        assert b"## Description" not in content
        assert content.endswith(b"---\n")
