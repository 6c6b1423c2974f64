"""
Settings and chart-of-accounts loading tests.

Verifies:
- The bundled defaults parse and point at the bundled chart
- LEDGER_DATABASE_URL overrides database.url
- Invalid values are rejected with ValueError, missing keys with KeyError
- Chart templates flatten parents first with inherited types
"""

from pathlib import Path

import pytest
import yaml

from ledger_config import (
    DATABASE_URL_ENV,
    DEFAULT_CHART_PATH,
    get_settings,
    load_chart_of_accounts,
    load_default_chart,
)
from ledger_config.loader import load_yaml_file, parse_chart_of_accounts, parse_settings
from ledger_kernel.domain.values import AccountType


def _write(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaults:
    def test_bundled_settings(self):
        settings = get_settings(environ={})

        assert settings.database.url == "sqlite+pysqlite:///:memory:"
        assert settings.logging.level == "INFO"
        assert settings.numbering.entry_prefix == "JE-"
        assert settings.numbering.entry_width == 6
        assert settings.reporting["default_currency"] == "USD"
        assert Path(settings.chart_of_accounts) == DEFAULT_CHART_PATH.resolve()

    def test_settings_load_is_logged(self, captured_logs):
        get_settings(environ={})
        loaded = [r for r in captured_logs() if r["message"] == "ledger_settings_loaded"]
        assert loaded[0]["dialect"] == "sqlite"

    def test_bundled_chart(self):
        chart = load_default_chart()
        by_code = {t.code: t for t in chart}

        assert len(chart) == 20
        assert by_code["CASH"].account_type == AccountType.ASSET
        assert by_code["CASH"].parent_code == "A-1"
        assert by_code["A"].parent_code is None


class TestEnvironmentOverride:
    def test_database_url_from_environment(self):
        settings = parse_settings(
            {"database": {"url": "sqlite:///file.db"}},
            environ={DATABASE_URL_ENV: "postgresql+psycopg://ledger@db/ledger"},
        )
        assert settings.database.url == "postgresql+psycopg://ledger@db/ledger"

    def test_url_may_come_only_from_environment(self):
        settings = parse_settings(
            {"database": {}},
            environ={DATABASE_URL_ENV: "sqlite:///env.db"},
        )
        assert settings.database.url == "sqlite:///env.db"

    def test_missing_url_without_override(self):
        with pytest.raises(KeyError):
            parse_settings({"database": {}}, environ={})

    def test_missing_database_section(self):
        with pytest.raises(KeyError):
            parse_settings({}, environ={})


class TestValidation:
    @pytest.mark.parametrize("width", [0, 19])
    def test_entry_width_bounds(self, width):
        with pytest.raises(ValueError, match="entry_width"):
            parse_settings(
                {"database": {"url": "sqlite://"}, "numbering": {"entry_width": width}},
                environ={},
            )

    def test_unknown_logging_level(self):
        with pytest.raises(ValueError, match="logging level"):
            parse_settings(
                {"database": {"url": "sqlite://"}, "logging": {"level": "chatty"}},
                environ={},
            )

    def test_logging_level_is_normalised(self):
        settings = parse_settings(
            {"database": {"url": "sqlite://"}, "logging": {"level": "debug"}},
            environ={},
        )
        assert settings.logging.level == "DEBUG"

    def test_empty_url(self):
        with pytest.raises(ValueError, match="database.url"):
            parse_settings({"database": {"url": ""}}, environ={})

    def test_pool_size(self):
        with pytest.raises(ValueError, match="pool_size"):
            parse_settings({"database": {"url": "sqlite://", "pool_size": 0}}, environ={})


class TestFiles:
    def test_relative_chart_resolved_against_settings_file(self, tmp_path):
        chart = _write(tmp_path / "chart.yaml", {
            "accounts": [{"code": "1000", "name": "Cash", "type": "asset"}],
        })
        settings_path = _write(tmp_path / "ledger.yaml", {
            "database": {"url": "sqlite://"},
            "chart_of_accounts": "chart.yaml",
        })

        settings = get_settings(settings_path, environ={})

        assert Path(settings.chart_of_accounts) == chart.resolve()
        assert [t.code for t in load_default_chart(settings)] == ["1000"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "absent.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_yaml_file(path)

    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}


class TestChartTemplates:
    def test_children_inherit_type_and_follow_parent(self):
        templates = parse_chart_of_accounts({
            "accounts": [{
                "code": "4",
                "name": "Revenue",
                "type": "revenue",
                "children": [
                    {"code": "4100", "name": "Sales"},
                    {"code": "4200", "name": "Services"},
                ],
            }],
        })

        assert [t.code for t in templates] == ["4", "4100", "4200"]
        assert all(t.account_type == AccountType.REVENUE for t in templates)
        assert templates[1].parent_code == "4"
        assert [t.display_order for t in templates] == [1, 2, 3]

    def test_top_level_type_required(self):
        with pytest.raises(KeyError):
            parse_chart_of_accounts({"accounts": [{"code": "X", "name": "X"}]})

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            parse_chart_of_accounts(
                {"accounts": [{"code": "X", "name": "X", "type": "goodwill"}]}
            )

    def test_duplicate_code(self):
        with pytest.raises(ValueError, match="Duplicate"):
            parse_chart_of_accounts({
                "accounts": [
                    {"code": "X", "name": "One", "type": "asset"},
                    {"code": "X", "name": "Two", "type": "asset"},
                ],
            })

    def test_chart_load_is_logged(self, captured_logs):
        load_chart_of_accounts(DEFAULT_CHART_PATH)
        loaded = [
            r for r in captured_logs() if r["message"] == "chart_of_accounts_template_loaded"
        ]
        assert loaded[0]["account_count"] == 20
