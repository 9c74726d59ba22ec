"""Threat-detection engine for uploads and user-supplied text.

Public API
----------
- :class:`ThreatEngine`: scan files and text fields, sanitize, reload rules
- :class:`Verdict`, :class:`Finding`, :class:`Severity`: result types
- :class:`CatalogStore`, :class:`RuleCatalog`: rule catalogs and hot reload
- :func:`aggregate`: reduce findings to a verdict
- :func:`sanitize`, :func:`render_safe_html`: render-only defanging
"""

from noticeshield.security.aggregator import aggregate
from noticeshield.security.catalog import CatalogStore, CompiledCatalog, RuleCatalog
from noticeshield.security.engine import ThreatEngine
from noticeshield.security.models import (
    BinarySubject,
    CatalogError,
    ContextTag,
    Finding,
    InvalidInputError,
    NoticeShieldError,
    RiskConfig,
    RuleKind,
    ScanLimits,
    Severity,
    TextSubject,
    Verdict,
)
from noticeshield.security.sanitizer import SanitizePolicy, encode_html, render_safe_html, sanitize

__all__ = [
    "BinarySubject",
    "CatalogError",
    "CatalogStore",
    "CompiledCatalog",
    "ContextTag",
    "Finding",
    "InvalidInputError",
    "NoticeShieldError",
    "RiskConfig",
    "RuleCatalog",
    "RuleKind",
    "SanitizePolicy",
    "ScanLimits",
    "Severity",
    "TextSubject",
    "ThreatEngine",
    "Verdict",
    "aggregate",
    "encode_html",
    "render_safe_html",
    "sanitize",
]
