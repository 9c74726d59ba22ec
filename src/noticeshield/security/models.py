"""Data models for the threat-detection engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any


class Severity(IntEnum):
    """Finding severity, ordered so aggregation can take the maximum."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def parse(cls, value: str | int | Severity) -> Severity:
        """Accept a member, its integer value, or its case-insensitive name."""
        if isinstance(value, Severity):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity: {value!r}") from None

    def escalate(self) -> Severity:
        """Return the next tier up, saturating at CRITICAL."""
        return Severity(min(self.value + 1, Severity.CRITICAL.value))


class RuleKind(StrEnum):
    """Why a finding fired."""

    # Filename / declared metadata
    NULL_BYTE = "null_byte"
    PATH_TRAVERSAL = "path_traversal"
    CONTROL_CHARACTER = "control_character"
    NAME_TOO_LONG = "name_too_long"
    RESERVED_NAME = "reserved_name"
    HIDDEN_FILE = "hidden_file"
    SUSPICIOUS_NAME = "suspicious_name"
    DOUBLE_EXTENSION = "double_extension"
    DANGEROUS_EXTENSION = "dangerous_extension"
    DISALLOWED_EXTENSION = "disallowed_extension"
    DISALLOWED_MEDIA_TYPE = "disallowed_media_type"
    DANGEROUS_MEDIA_TYPE = "dangerous_media_type"
    MEDIA_TYPE_MISMATCH = "media_type_mismatch"

    # File bytes
    SIGNATURE_MISMATCH = "signature_mismatch"
    EXECUTABLE_SIGNATURE = "executable_signature"
    EMBEDDED_ARCHIVE = "embedded_archive"
    MALICIOUS_CONTENT = "malicious_content"
    HIGH_ENTROPY = "high_entropy"
    EMPTY_FILE = "empty_file"
    SUSPICIOUSLY_SMALL = "suspiciously_small"
    SIZE_MISMATCH = "size_mismatch"
    FILE_TOO_LARGE = "file_too_large"

    # SQL injection
    SQL_KEYWORD = "sql_keyword"
    BOOLEAN_INJECTION = "boolean_injection"
    UNION_INJECTION = "union_injection"
    STACKED_QUERY = "stacked_query"
    TIME_BASED_INJECTION = "time_based_injection"
    SQL_COMMENT = "sql_comment"
    SCHEMA_PROBE = "schema_probe"
    SQL_FUNCTION = "sql_function"
    FILE_ACCESS = "file_access"

    # Script injection
    SCRIPT_TAG = "script_tag"
    DANGEROUS_TAG = "dangerous_tag"
    EVENT_HANDLER_ATTRIBUTE = "event_handler_attribute"
    PROTOCOL_HANDLER = "protocol_handler"
    STYLE_INJECTION = "style_injection"
    TEMPLATE_INJECTION = "template_injection"
    HIDDEN_MARKUP = "hidden_markup"
    SCRIPT_CALL = "script_call"

    # Shared
    ENCODED_PAYLOAD = "encoded_payload"
    SUSPICIOUS_CHARACTERS = "suspicious_characters"
    CONTEXT_VIOLATION = "context_violation"
    RULE_EVALUATION_ERROR = "rule_evaluation_error"


class ContextTag(StrEnum):
    """Syntactic position a piece of text will be placed into."""

    HTML_BODY = "html_body"
    HTML_ATTRIBUTE = "html_attribute"
    SQL_WHERE_CLAUSE = "sql_where_clause"
    SQL_ORDER_BY = "sql_order_by"
    SQL_LIMIT = "sql_limit"
    GENERIC = "generic"


class NoticeShieldError(Exception):
    """Base exception for the threat-detection engine."""


class InvalidInputError(NoticeShieldError):
    """Raised when a subject cannot be scanned at all."""


class CatalogError(NoticeShieldError):
    """Raised when a rule catalog fails validation or compilation."""


def clip_fragment(text: str | None, limit: int) -> str | None:
    """Cap a matched fragment so large payloads never reach log sinks."""
    if text is None:
        return None
    return text[:limit]


@dataclass(frozen=True)
class Finding:
    """One rule match: what was detected and how severe it is."""

    kind: RuleKind
    severity: Severity
    detail: str
    rule_id: str
    offset: int | None = None
    matched_fragment: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.name.lower(),
            "detail": self.detail,
            "rule_id": self.rule_id,
            "offset": self.offset,
            "matched_fragment": self.matched_fragment,
        }


@dataclass(frozen=True)
class BinarySubject:
    """An uploaded file as supplied by the upload handler."""

    data: bytes
    declared_name: str
    declared_media_type: str
    declared_size: int
    category: str


@dataclass(frozen=True)
class TextSubject:
    """A user-controlled string and the context it will be placed into."""

    content: str
    context: ContextTag = ContextTag.GENERIC


@dataclass(frozen=True)
class Verdict:
    """The aggregated decision for one scan."""

    safe: bool
    severity: Severity | None
    risk_score: int
    findings: tuple[Finding, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "safe": self.safe,
            "severity": self.severity.name.lower() if self.severity is not None else None,
            "risk_score": self.risk_score,
            "findings": [f.to_dict() for f in self.findings],
        }


def _default_weights() -> dict[Severity, int]:
    return {
        Severity.LOW: 5,
        Severity.MEDIUM: 15,
        Severity.HIGH: 25,
        Severity.CRITICAL: 40,
    }


@dataclass(frozen=True)
class RiskConfig:
    """Weights and threshold for turning findings into a verdict.

    The default threshold makes one Critical finding, two High findings, or a
    High plus a Medium finding unsafe, while any single non-critical signal
    stays below it.
    """

    max_score: int = 40
    weights: dict[Severity, int] = field(default_factory=_default_weights)


@dataclass(frozen=True)
class ScanLimits:
    """Fixed resource bounds applied to every scan."""

    content_scan_prefix_bytes: int = 1024 * 1024
    entropy_sample_bytes: int = 1024
    entropy_threshold: float = 7.5
    decode_max_depth: int = 2
    fragment_max_chars: int = 80
    size_tolerance_bytes: int = 0
    embedded_header_region_bytes: int = 100
