"""Threat engine: the entry points callers use.

A :class:`ThreatEngine` wraps a :class:`CatalogStore` plus the aggregation and
scan limits. Each scan takes one catalog snapshot and uses it throughout, so a
concurrent reload never changes the rules mid-scan. The engine keeps no
per-scan state and is safe to share across threads.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from noticeshield.config import Settings, get_settings
from noticeshield.security.aggregator import aggregate
from noticeshield.security.binary_scanner import scan_binary as _scan_binary
from noticeshield.security.catalog import CatalogStore, CompiledCatalog
from noticeshield.security.models import (
    BinarySubject,
    ContextTag,
    InvalidInputError,
    RiskConfig,
    ScanLimits,
    TextSubject,
    Verdict,
)
from noticeshield.security.sanitizer import SanitizePolicy, render_safe_html, sanitize
from noticeshield.security.text_scanner import scan_text as _scan_text

DEFAULT_ALLOWED_TAGS = ("p", "br", "b", "i", "u", "strong", "em", "ul", "ol", "li", "a")
DEFAULT_ALLOWED_ATTRIBUTES = ("href", "title", "target")


def parse_context(value: ContextTag | str) -> ContextTag:
    """Accept a :class:`ContextTag` or its string value.

    Raises:
        InvalidInputError: If *value* names no known context.
    """
    if isinstance(value, ContextTag):
        return value
    try:
        return ContextTag(str(value).strip().lower())
    except ValueError:
        raise InvalidInputError(f"Unknown context tag: {value!r}") from None


class ThreatEngine:
    """Scan uploads and text fields against the live rule catalog."""

    def __init__(
        self,
        store: CatalogStore,
        *,
        risk_config: RiskConfig | None = None,
        limits: ScanLimits | None = None,
        allowed_tags: Iterable[str] = DEFAULT_ALLOWED_TAGS,
        allowed_attributes: Iterable[str] = DEFAULT_ALLOWED_ATTRIBUTES,
    ) -> None:
        self._store = store
        self._risk_config = risk_config or RiskConfig()
        self._limits = limits or ScanLimits()
        self._allowed_tags = tuple(allowed_tags)
        self._allowed_attributes = tuple(allowed_attributes)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ThreatEngine:
        """Build an engine from configuration.

        Raises:
            CatalogError: If the configured catalog cannot be loaded.
        """
        settings = settings or get_settings()
        store = CatalogStore.load(settings.catalog_path)
        return cls(
            store,
            risk_config=settings.risk_config(),
            limits=settings.scan_limits(),
            allowed_tags=settings.sanitizer_allowed_tags,
            allowed_attributes=settings.sanitizer_allowed_attributes,
        )

    @property
    def catalog(self) -> CompiledCatalog:
        """The snapshot new scans will use."""
        return self._store.snapshot()

    @property
    def store(self) -> CatalogStore:
        return self._store

    @property
    def limits(self) -> ScanLimits:
        return self._limits

    @property
    def risk_config(self) -> RiskConfig:
        return self._risk_config

    def scan_binary(
        self,
        data: bytes,
        declared_name: str,
        declared_media_type: str,
        declared_size: int,
        category: str,
    ) -> Verdict:
        """Scan an uploaded file.

        Raises:
            InvalidInputError: If the subject is malformed or the category
                is unknown.
        """
        subject = BinarySubject(
            data=data,
            declared_name=declared_name,
            declared_media_type=declared_media_type,
            declared_size=declared_size,
            category=category,
        )
        findings = _scan_binary(subject, self._store.snapshot(), self._limits)
        return aggregate(findings, self._risk_config)

    def scan_text(self, content: str, context: ContextTag | str = ContextTag.GENERIC) -> Verdict:
        """Scan a user-supplied string destined for *context*.

        Raises:
            InvalidInputError: If the content is empty or not UTF-8 text, or
                the context is unknown.
        """
        subject = TextSubject(content=content, context=parse_context(context))
        findings = _scan_text(subject, self._store.snapshot(), self._limits)
        return aggregate(findings, self._risk_config)

    def scan_fields(
        self,
        fields: Mapping[str, tuple[str, ContextTag | str]],
    ) -> dict[str, Verdict]:
        """Scan several named fields, all against the same catalog snapshot.

        Args:
            fields: Field name to ``(content, context)``.

        Raises:
            InvalidInputError: If any field is malformed; the message names
                the field.
        """
        snapshot = self._store.snapshot()
        verdicts: dict[str, Verdict] = {}
        for name, (content, context) in fields.items():
            try:
                subject = TextSubject(content=content, context=parse_context(context))
                findings = _scan_text(subject, snapshot, self._limits)
            except InvalidInputError as e:
                raise InvalidInputError(f"Field {name!r}: {e}") from e
            verdicts[name] = aggregate(findings, self._risk_config)
        return verdicts

    def sanitize_policy(self, *, strip_schemes: bool = True) -> SanitizePolicy:
        return SanitizePolicy.from_catalog(self._store.snapshot(), strip_schemes=strip_schemes)

    def sanitize(self, text: str, policy: SanitizePolicy | None = None) -> str:
        """Defang *text* with *policy*, or the catalog's tag and attribute lists."""
        return sanitize(text, policy or self.sanitize_policy())

    def render_rich_text(self, text: str) -> str:
        """Render user HTML keeping only the configured tags and attributes."""
        return render_safe_html(text, self._allowed_tags, self._allowed_attributes)

    def reload_catalog(self, path: str | Path | None = None) -> bool:
        """Hot-swap the catalog; on failure the current one stays live."""
        return self._store.reload(path)
