"""Tests for layered configuration loading."""
import pytest

from showbook.core.config import BatchLimits, ShowbookConfig
from showbook.core.exceptions import ValidationError
from showbook.core.paths import ROOT


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SHOWBOOK_* variables from the developer's shell out of the tests."""
    for name in (
        "SHOWBOOK_CONFIG",
        "SHOWBOOK_DB_PATH",
        "SHOWBOOK_LOG_DIR",
        "SHOWBOOK_DEFAULT_TIMEZONE",
        "SHOWBOOK_LIMIT_BULK_IMPORT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_dir):
        config = ShowbookConfig.load(tmp_dir / "absent.yaml")
        assert config.limits == BatchLimits()
        assert config.limits.bulk_import == 50
        assert config.limits.discovery_import == 100
        assert config.default_timezone == "America/Phoenix"

    def test_timezone_for_state(self):
        config = ShowbookConfig()
        assert config.timezone_for_state("az") == "America/Phoenix"
        assert config.timezone_for_state("NY") == "America/New_York"
        assert config.timezone_for_state(None) == "America/Phoenix"
        assert config.timezone_for_state("ZZ") == "America/Phoenix"


class TestYamlFile:
    def test_file_values_applied(self, tmp_dir):
        path = tmp_dir / "showbook.yaml"
        path.write_text(
            "database:\n"
            f"  path: {tmp_dir / 'db.sqlite'}\n"
            "limits:\n"
            "  bulk_import: 5\n"
            "timezones:\n"
            "  default: America/Denver\n"
            "  states:\n"
            "    hi: Pacific/Honolulu\n",
            encoding="utf-8",
        )

        config = ShowbookConfig.load(path)

        assert config.db_path == tmp_dir / "db.sqlite"
        assert config.limits.bulk_import == 5
        assert config.timezone_for_state("HI") == "Pacific/Honolulu"
        assert config.timezone_for_state("ZZ") == "America/Denver"

    def test_relative_paths_resolve_against_project_root(self, tmp_dir):
        path = tmp_dir / "showbook.yaml"
        path.write_text("logging:\n  dir: custom-logs\n", encoding="utf-8")

        assert ShowbookConfig.load(path).log_dir == ROOT / "custom-logs"

    def test_unknown_section_rejected(self, tmp_dir):
        path = tmp_dir / "showbook.yaml"
        path.write_text("metrics:\n  enabled: true\n", encoding="utf-8")

        with pytest.raises(ValidationError, match="Unknown config sections"):
            ShowbookConfig.load(path)

    def test_unknown_limit_rejected(self, tmp_dir):
        path = tmp_dir / "showbook.yaml"
        path.write_text("limits:\n  everything: 3\n", encoding="utf-8")

        with pytest.raises(ValidationError, match="Unknown batch limit"):
            ShowbookConfig.load(path)

    @pytest.mark.parametrize("value", ["0", "-2", "many"])
    def test_bad_limit_values(self, tmp_dir, value):
        path = tmp_dir / "showbook.yaml"
        path.write_text(f"limits:\n  bulk_export: '{value}'\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            ShowbookConfig.load(path)

    def test_non_mapping_file_rejected(self, tmp_dir):
        path = tmp_dir / "showbook.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ValidationError, match="must be a mapping"):
            ShowbookConfig.load(path)


class TestEnvironment:
    def test_env_overrides_file(self, tmp_dir, monkeypatch):
        path = tmp_dir / "showbook.yaml"
        path.write_text("limits:\n  bulk_import: 5\n", encoding="utf-8")
        monkeypatch.setenv("SHOWBOOK_LIMIT_BULK_IMPORT", "7")
        monkeypatch.setenv("SHOWBOOK_DB_PATH", str(tmp_dir / "env.db"))

        config = ShowbookConfig.load(path)

        assert config.limits.bulk_import == 7
        assert config.db_path == tmp_dir / "env.db"

    def test_config_path_from_env(self, tmp_dir, monkeypatch):
        path = tmp_dir / "elsewhere.yaml"
        path.write_text("timezones:\n  default: America/Chicago\n", encoding="utf-8")
        monkeypatch.setenv("SHOWBOOK_CONFIG", str(path))

        assert ShowbookConfig.load().default_timezone == "America/Chicago"
