"""Unit tests for the ThreatEngine entry points."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from noticeshield.config import Settings
from noticeshield.security.catalog import CatalogStore
from noticeshield.security.default_rules import CATALOG_VERSION, default_catalog
from noticeshield.security.engine import ThreatEngine, parse_context
from noticeshield.security.models import (
    CatalogError,
    ContextTag,
    InvalidInputError,
    RiskConfig,
    RuleKind,
    ScanLimits,
    Severity,
)

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01" + b"\x00" * 200


class TestConstruction:
    def test_from_settings(self) -> None:
        engine = ThreatEngine.from_settings(Settings(_env_file=None))  # type: ignore[call-arg]
        assert engine.catalog.version == CATALOG_VERSION
        assert engine.limits == ScanLimits()
        assert engine.risk_config == RiskConfig()

    def test_from_settings_with_catalog_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(default_catalog().model_dump_json(), encoding="utf-8")
        settings = Settings(_env_file=None, catalog_path=str(path))  # type: ignore[call-arg]
        assert ThreatEngine.from_settings(settings).catalog.source == str(path)

    def test_from_settings_missing_catalog(self, tmp_path: Path) -> None:
        settings = Settings(  # type: ignore[call-arg]
            _env_file=None, catalog_path=str(tmp_path / "missing.json")
        )
        with pytest.raises(CatalogError):
            ThreatEngine.from_settings(settings)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (ContextTag.HTML_BODY, ContextTag.HTML_BODY),
            ("html_body", ContextTag.HTML_BODY),
            (" SQL_LIMIT ", ContextTag.SQL_LIMIT),
        ],
    )
    def test_parse_context(self, value: ContextTag | str, expected: ContextTag) -> None:
        assert parse_context(value) is expected

    def test_parse_context_unknown(self) -> None:
        with pytest.raises(InvalidInputError, match="where"):
            parse_context("where")


class TestScanning:
    """Engine scans return aggregated verdicts."""

    def test_clean_upload(self, engine: ThreatEngine) -> None:
        verdict = engine.scan_binary(
            JPEG_BYTES, "photo.jpg", "image/jpeg", len(JPEG_BYTES), "images"
        )
        assert verdict.safe is True
        assert verdict.findings == ()

    def test_executable_upload(self, engine: ThreatEngine) -> None:
        data = b"MZ" + b"\x00" * 200
        verdict = engine.scan_binary(data, "photo.jpg", "image/jpeg", len(data), "images")
        assert verdict.safe is False
        assert verdict.severity is Severity.CRITICAL

    def test_unknown_category(self, engine: ThreatEngine) -> None:
        with pytest.raises(InvalidInputError):
            engine.scan_binary(JPEG_BYTES, "photo.jpg", "image/jpeg", len(JPEG_BYTES), "nope")

    def test_scan_text_with_string_context(self, engine: ThreatEngine) -> None:
        verdict = engine.scan_text("1 OR 1=1", "sql_where_clause")
        assert verdict.safe is False
        assert any(f.kind is RuleKind.BOOLEAN_INJECTION for f in verdict.findings)

    def test_scan_text_default_context(self, engine: ThreatEngine) -> None:
        assert engine.scan_text("hello world").safe is True

    def test_scan_text_empty(self, engine: ThreatEngine) -> None:
        with pytest.raises(InvalidInputError):
            engine.scan_text("")

    def test_risk_config_is_applied(self, store: CatalogStore) -> None:
        lenient = ThreatEngine(store, risk_config=RiskConfig(max_score=100))
        verdict = lenient.scan_text("1 OR 1=1", ContextTag.SQL_WHERE_CLAUSE)
        assert verdict.severity is Severity.HIGH
        assert verdict.safe is True

    def test_limits_are_applied(self, store: CatalogStore) -> None:
        shallow = ThreatEngine(store, limits=ScanLimits(decode_max_depth=0))
        verdict = shallow.scan_text("%3Cscript%3E")
        assert not any(f.rule_id == "script_tag" for f in verdict.findings)


class TestScanFields:
    def test_each_field_gets_a_verdict(self, engine: ThreatEngine) -> None:
        verdicts = engine.scan_fields(
            {
                "query": ("hello", "generic"),
                "limit": ("10; DROP TABLE users", ContextTag.SQL_LIMIT),
            }
        )
        assert verdicts["query"].safe is True
        assert verdicts["limit"].safe is False

    def test_invalid_field_is_named(self, engine: ThreatEngine) -> None:
        with pytest.raises(InvalidInputError, match="Field 'bio'"):
            engine.scan_fields({"name": ("Ada", "generic"), "bio": ("", "html_body")})


class TestSanitizing:
    def test_sanitize_with_catalog_policy(self, engine: ThreatEngine) -> None:
        assert engine.sanitize("<script>alert(1)</script>") == "alert(1)"

    def test_sanitize_keeping_schemes(self, engine: ThreatEngine) -> None:
        policy = engine.sanitize_policy(strip_schemes=False)
        assert "javascript:" in engine.sanitize("javascript:go()", policy)

    def test_render_rich_text(self, engine: ThreatEngine) -> None:
        rendered = engine.render_rich_text('<b>hi</b><img src=x onerror="alert(1)">')
        assert rendered.startswith("<b>hi</b>&lt;img")

    def test_custom_allow_list(self, store: CatalogStore) -> None:
        engine = ThreatEngine(store, allowed_tags=["img"], allowed_attributes=["src"])
        assert engine.render_rich_text('<img src="a.png" onerror=x>') == '<img src="a.png">'


class TestReload:
    """Reloads swap the catalog without disturbing scans."""

    def test_reload_failure_keeps_serving(self, engine: ThreatEngine, tmp_path: Path) -> None:
        before = engine.catalog
        assert engine.reload_catalog(tmp_path / "missing.json") is False
        assert engine.catalog is before
        assert engine.scan_text("1 OR 1=1", "sql_where_clause").safe is False

    def test_reload_success(self, engine: ThreatEngine, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(
            default_catalog().model_copy(update={"version": "2099.01.1"}).model_dump_json(),
            encoding="utf-8",
        )
        assert engine.reload_catalog(path) is True
        assert engine.catalog.version == "2099.01.1"

    def test_scans_during_reload_are_consistent(
        self, engine: ThreatEngine, tmp_path: Path
    ) -> None:
        path = tmp_path / "rules.json"
        path.write_text(default_catalog().model_dump_json(), encoding="utf-8")
        expected = engine.scan_text("' UNION SELECT password FROM users--")

        def _scan(_: int) -> bool:
            return engine.scan_text("' UNION SELECT password FROM users--") == expected

        def _reload(_: int) -> bool:
            return engine.reload_catalog(path)

        with ThreadPoolExecutor(max_workers=4) as pool:
            scans = pool.map(_scan, range(40))
            reloads = pool.map(_reload, range(5))
            assert all(scans)
            assert all(reloads)
