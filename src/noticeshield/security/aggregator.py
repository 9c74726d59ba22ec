"""Risk aggregation: reduce a list of findings to one verdict."""

from __future__ import annotations

from collections.abc import Iterable

from noticeshield.security.models import Finding, RiskConfig, Severity, Verdict

MAX_RISK_SCORE = 100


def risk_score(findings: Iterable[Finding], config: RiskConfig) -> int:
    """Weighted sum of finding severities, capped at 100.

    Repeated findings are summed without decay or de-duplication.
    """
    total = sum(config.weights.get(f.severity, 0) for f in findings)
    return min(MAX_RISK_SCORE, total)


def aggregate(findings: Iterable[Finding], config: RiskConfig | None = None) -> Verdict:
    """Combine *findings* into a :class:`Verdict`.

    A verdict is safe when there are no findings, or when no finding is
    Critical and the score stays below ``config.max_score``. The result
    depends only on the findings and the config.
    """
    config = config or RiskConfig()
    items = tuple(findings)
    if not items:
        return Verdict(safe=True, severity=None, risk_score=0, findings=())

    severity = max(f.severity for f in items)
    score = risk_score(items, config)
    safe = severity < Severity.CRITICAL and score < config.max_score
    return Verdict(safe=safe, severity=severity, risk_score=score, findings=items)
