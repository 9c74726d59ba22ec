"""Text scanner: user-controlled strings checked for SQL and script injection.

Rule sets run in a fixed order against the raw string: SQL rules, script
rules, density rules, then the rules registered for the subject's context.
The string is then decoded one layer at a time (see
:mod:`noticeshield.security.decoders`) and the SQL and script rules re-run on
each layer. A rule that first fires on a decoded layer is reported as an
``ENCODED_PAYLOAD`` finding one severity tier above its catalog severity.
"""

from __future__ import annotations

from noticeshield.security.catalog import CompiledCatalog
from noticeshield.security.decoders import decode_layers
from noticeshield.security.models import (
    ContextTag,
    Finding,
    InvalidInputError,
    RuleKind,
    ScanLimits,
    TextSubject,
)
from noticeshield.security.rules import run_rules, run_threshold_rules


def _validate(subject: TextSubject) -> tuple[str, ContextTag]:
    content = subject.content
    if isinstance(content, (bytes, bytearray)):
        try:
            content = bytes(content).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInputError("Text content is not valid UTF-8") from e
    if not isinstance(content, str):
        raise InvalidInputError("Text content must be a string")
    if not content:
        raise InvalidInputError("Text content is empty")
    try:
        content.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidInputError("Text content is not valid UTF-8") from e
    if not isinstance(subject.context, ContextTag):
        raise InvalidInputError(f"Unknown context tag: {subject.context!r}")
    return content, subject.context


def _injection_findings(text: str, catalog: CompiledCatalog, limits: ScanLimits) -> list[Finding]:
    findings = run_rules(catalog.sql_rules, text, limits)
    findings.extend(run_rules(catalog.script_rules, text, limits))
    return findings


def _decoded_findings(
    text: str,
    catalog: CompiledCatalog,
    limits: ScanLimits,
    seen: set[str],
) -> list[Finding]:
    findings: list[Finding] = []
    for depth, layer in enumerate(decode_layers(text, limits.decode_max_depth), start=1):
        for finding in _injection_findings(layer, catalog, limits):
            if finding.rule_id in seen or finding.kind is RuleKind.RULE_EVALUATION_ERROR:
                continue
            seen.add(finding.rule_id)
            findings.append(
                Finding(
                    kind=RuleKind.ENCODED_PAYLOAD,
                    severity=finding.severity.escalate(),
                    detail=(
                        f"{finding.detail} (revealed after {depth} decode "
                        f"pass{'es' if depth > 1 else ''})"
                    ),
                    rule_id=finding.rule_id,
                    matched_fragment=finding.matched_fragment,
                )
            )
    return findings


def scan_text(
    subject: TextSubject,
    catalog: CompiledCatalog,
    limits: ScanLimits | None = None,
) -> list[Finding]:
    """Check one string against the injection rule sets.

    Args:
        subject: The string and the context it will be placed into.
        catalog: Compiled catalog snapshot, read-only for the whole scan.
        limits: Resource bounds; defaults to :class:`ScanLimits`.

    Returns:
        All findings: raw-string findings first, then decoded-layer findings.

    Raises:
        InvalidInputError: If the content is empty, not text, not valid
            UTF-8, or the context tag is unknown.
    """
    limits = limits or ScanLimits()
    text, context = _validate(subject)

    findings = _injection_findings(text, catalog, limits)
    findings.extend(run_threshold_rules(catalog.threshold_rules, text, limits))
    findings.extend(run_rules(catalog.context_rules_for(context), text, limits))

    seen = {f.rule_id for f in findings}
    findings.extend(_decoded_findings(text, catalog, limits, seen))
    return findings
