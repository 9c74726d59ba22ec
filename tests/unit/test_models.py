"""Unit tests for the engine data models."""

from __future__ import annotations

import dataclasses

import pytest

from noticeshield.security.models import (
    CatalogError,
    Finding,
    InvalidInputError,
    NoticeShieldError,
    RuleKind,
    Severity,
    Verdict,
    clip_fragment,
)


class TestSeverity:
    """Ordering, parsing and escalation."""

    def test_ordering(self) -> None:
        assert Severity.LOW < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("low", Severity.LOW),
            ("Medium", Severity.MEDIUM),
            (" HIGH ", Severity.HIGH),
            ("critical", Severity.CRITICAL),
            (3, Severity.HIGH),
            (Severity.LOW, Severity.LOW),
        ],
    )
    def test_parse(self, value: str | int | Severity, expected: Severity) -> None:
        assert Severity.parse(value) is expected

    def test_parse_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown severity"):
            Severity.parse("severe")

    def test_parse_unknown_value(self) -> None:
        with pytest.raises(ValueError):
            Severity.parse(9)

    @pytest.mark.parametrize(
        ("severity", "expected"),
        [
            (Severity.LOW, Severity.MEDIUM),
            (Severity.MEDIUM, Severity.HIGH),
            (Severity.HIGH, Severity.CRITICAL),
            (Severity.CRITICAL, Severity.CRITICAL),
        ],
    )
    def test_escalate(self, severity: Severity, expected: Severity) -> None:
        assert severity.escalate() is expected


class TestFinding:
    def test_to_dict(self) -> None:
        finding = Finding(
            kind=RuleKind.SCRIPT_TAG,
            severity=Severity.CRITICAL,
            detail="Script tag",
            rule_id="script_tag",
            offset=4,
            matched_fragment="<script",
        )
        assert finding.to_dict() == {
            "kind": "script_tag",
            "severity": "critical",
            "detail": "Script tag",
            "rule_id": "script_tag",
            "offset": 4,
            "matched_fragment": "<script",
        }

    def test_is_immutable(self) -> None:
        finding = Finding(
            kind=RuleKind.HIGH_ENTROPY, severity=Severity.MEDIUM, detail="x", rule_id="e"
        )
        with pytest.raises(dataclasses.FrozenInstanceError):
            finding.severity = Severity.LOW  # type: ignore[misc]


class TestVerdict:
    def test_to_dict_safe(self) -> None:
        verdict = Verdict(safe=True, severity=None, risk_score=0)
        assert verdict.to_dict() == {
            "safe": True,
            "severity": None,
            "risk_score": 0,
            "findings": [],
        }

    def test_to_dict_with_findings(self) -> None:
        finding = Finding(
            kind=RuleKind.SIZE_MISMATCH, severity=Severity.LOW, detail="x", rule_id="size"
        )
        verdict = Verdict(safe=True, severity=Severity.LOW, risk_score=5, findings=(finding,))
        data = verdict.to_dict()
        assert data["severity"] == "low"
        assert data["findings"] == [finding.to_dict()]


class TestHelpers:
    @pytest.mark.parametrize(
        ("text", "limit", "expected"),
        [
            (None, 80, None),
            ("short", 80, "short"),
            ("a" * 100, 80, "a" * 80),
            ("", 80, ""),
        ],
    )
    def test_clip_fragment(self, text: str | None, limit: int, expected: str | None) -> None:
        assert clip_fragment(text, limit) == expected

    def test_error_hierarchy(self) -> None:
        assert issubclass(InvalidInputError, NoticeShieldError)
        assert issubclass(CatalogError, NoticeShieldError)
        assert not issubclass(InvalidInputError, CatalogError)
