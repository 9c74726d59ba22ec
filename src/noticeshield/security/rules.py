"""Compiled rule types and the shared evaluation loop.

Patterns are compiled with RE2, so matching cost is linear in the input no
matter how adversarial it is. Every rule is evaluated in isolation: a rule
that fails to evaluate is recorded as a ``RULE_EVALUATION_ERROR`` finding
and the remaining rules still run.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from noticeshield.logging import get_logger
from noticeshield.security.models import (
    ContextTag,
    Finding,
    RuleKind,
    ScanLimits,
    Severity,
    clip_fragment,
)

log = get_logger("noticeshield.security.rules")


@dataclass(frozen=True)
class CompiledRule:
    """A textual rule ready for matching."""

    id: str
    kind: RuleKind
    severity: Severity
    description: str
    regex: Any  # re2 compiled pattern
    contexts: frozenset[ContextTag] = frozenset()

    def applies_to(self, context: ContextTag) -> bool:
        return not self.contexts or context in self.contexts


@dataclass(frozen=True)
class CompiledThresholdRule:
    """A textual rule that fires once its match count exceeds ``limit``."""

    id: str
    kind: RuleKind
    severity: Severity
    description: str
    regex: Any
    limit: int


@dataclass(frozen=True)
class CompiledSignature:
    """A magic-byte pattern; ``None`` entries match any byte."""

    id: str
    kind: RuleKind
    severity: Severity
    description: str
    pattern: tuple[int | None, ...]
    allowed_media_types: frozenset[str] = frozenset()

    def matches(self, header: bytes) -> bool:
        return signature_matches(header, self.pattern)


def parse_signature(text: str) -> tuple[int | None, ...]:
    """Parse ``"52 49 46 46 ?? ?? ?? ?? 57 45"`` into a byte pattern.

    Raises:
        ValueError: If a token is neither a hex byte nor ``??``.
    """
    pattern: list[int | None] = []
    for token in text.split():
        if token == "??":
            pattern.append(None)
            continue
        if len(token) != 2:
            raise ValueError(f"Invalid signature byte {token!r}")
        pattern.append(int(token, 16))
    if not pattern:
        raise ValueError("Signature must contain at least one byte")
    return tuple(pattern)


def signature_matches(header: bytes, pattern: Sequence[int | None]) -> bool:
    if len(header) < len(pattern):
        return False
    return all(expected is None or header[i] == expected for i, expected in enumerate(pattern))


def rule_error_finding(rule_id: str, exc: BaseException) -> Finding:
    """Record a failed rule as evidence so the scan never fails open."""
    log.warning("rule_evaluation_failed", rule_id=rule_id, error=type(exc).__name__)
    return Finding(
        kind=RuleKind.RULE_EVALUATION_ERROR,
        severity=Severity.MEDIUM,
        detail=f"Rule {rule_id} could not be evaluated",
        rule_id=rule_id,
    )


def run_rules(
    rules: Iterable[CompiledRule],
    text: str,
    limits: ScanLimits,
    *,
    severity: Severity | None = None,
) -> list[Finding]:
    """Evaluate *rules* against *text*, one finding per matching rule.

    Args:
        rules: Compiled rules, evaluated in catalog order.
        text: The content to match.
        limits: Scan bounds (fragment length).
        severity: Overrides each rule's own severity when given.
    """
    findings: list[Finding] = []
    for rule in rules:
        try:
            match = rule.regex.search(text)
        except Exception as exc:
            findings.append(rule_error_finding(rule.id, exc))
            continue
        if match is None:
            continue
        findings.append(
            Finding(
                kind=rule.kind,
                severity=severity or rule.severity,
                detail=rule.description,
                rule_id=rule.id,
                offset=match.start(),
                matched_fragment=clip_fragment(match.group(0), limits.fragment_max_chars),
            )
        )
    return findings


def run_threshold_rules(
    rules: Iterable[CompiledThresholdRule],
    text: str,
    limits: ScanLimits,
) -> list[Finding]:
    """Evaluate density rules; each fires when its match count exceeds its limit."""
    findings: list[Finding] = []
    for rule in rules:
        try:
            count = 0
            first = None
            for match in rule.regex.finditer(text):
                if first is None:
                    first = match
                count += 1
                if count > rule.limit:
                    break
        except Exception as exc:
            findings.append(rule_error_finding(rule.id, exc))
            continue
        if count <= rule.limit or first is None:
            continue
        findings.append(
            Finding(
                kind=rule.kind,
                severity=rule.severity,
                detail=f"{rule.description} (more than {rule.limit})",
                rule_id=rule.id,
                offset=first.start(),
                matched_fragment=clip_fragment(first.group(0), limits.fragment_max_chars),
            )
        )
    return findings
