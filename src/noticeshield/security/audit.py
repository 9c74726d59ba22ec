"""Audit logging and user-facing messages for scan verdicts.

These helpers belong to the calling layer; the engine itself never logs
subject contents or verdicts. Raw content is never logged, only its SHA-256
hash and length. Matched fragments are already capped on each finding.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime

from noticeshield.logging import get_logger
from noticeshield.security.models import Verdict

log = get_logger("noticeshield.security.audit")

GENERIC_REJECTION = "The submitted content was rejected by a security check."


def content_digest(content: str | bytes) -> str:
    if isinstance(content, str):
        content = content.encode("utf-8", errors="surrogatepass")
    return hashlib.sha256(content).hexdigest()


def log_security_event(
    *,
    request_id: str,
    session_id: str | None,
    subject_label: str,
    content: str | bytes,
    verdict: Verdict,
) -> None:
    """Log a forensic record for a verdict, keyed by request and session."""
    log.warning(
        "security_event",
        event_type="threat_detected" if not verdict.safe else "suspicious_input",
        request_id=request_id,
        session_id=session_id,
        subject=subject_label,
        timestamp=datetime.now(UTC).isoformat(),
        safe=verdict.safe,
        severity=verdict.severity.name.lower() if verdict.severity is not None else None,
        risk_score=verdict.risk_score,
        finding_count=len(verdict.findings),
        findings=[
            {
                "kind": f.kind.value,
                "severity": f.severity.name.lower(),
                "rule_id": f.rule_id,
                "offset": f.offset,
                "matched": f.matched_fragment,
            }
            for f in verdict.findings
        ],
        content_hash=content_digest(content),
        content_length=len(content),
    )


def public_rejection(verdict: Verdict) -> str | None:
    """Message safe to show the end user, or None when the verdict is safe.

    Never includes fragments, rule ids or scores.
    """
    if verdict.safe:
        return None
    return GENERIC_REJECTION
