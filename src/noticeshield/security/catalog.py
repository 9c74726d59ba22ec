"""Rule catalogs: serializable schema, compilation, and the live snapshot store.

A :class:`RuleCatalog` is plain data (it round-trips through JSON). It is
compiled once into an immutable :class:`CompiledCatalog`, which every scan
reads without locking. :class:`CatalogStore` swaps whole snapshots, so a
reload never exposes a half-built catalog to in-flight scans.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

import re2
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
)

from noticeshield.logging import get_logger
from noticeshield.security.models import CatalogError, ContextTag, RuleKind, Severity
from noticeshield.security.rules import (
    CompiledRule,
    CompiledSignature,
    CompiledThresholdRule,
    parse_signature,
)

log = get_logger("noticeshield.security.catalog")

_IDENTIFIER = re.compile(r"^[a-z][a-z0-9_]*$")
_WORDLIST_ENTRY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?: [A-Za-z_][A-Za-z0-9_]*)*$")
_MARKUP_NAME = re.compile(r"^[a-z][a-z0-9-]*$")


# ---------------------------------------------------------------------------
# Serializable schema
# ---------------------------------------------------------------------------


class _SeverityModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    severity: Severity

    @field_validator("severity", mode="before")
    @classmethod
    def parse_severity(cls, v: Any) -> Severity:
        return Severity.parse(v)

    @field_serializer("severity")
    def serialize_severity(self, v: Severity) -> str:
        return v.name.lower()


class PatternRule(_SeverityModel):
    """One textual detection rule."""

    id: str
    kind: RuleKind
    pattern: str
    description: str
    contexts: list[ContextTag] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not _IDENTIFIER.match(v):
            raise ValueError(f"Rule id must be snake_case, got: {v!r}")
        return v


class ThresholdRule(PatternRule):
    """A textual rule that fires once its matches exceed ``limit``."""

    limit: int = Field(ge=0)

    @field_validator("contexts")
    @classmethod
    def validate_contexts(cls, v: list[ContextTag]) -> list[ContextTag]:
        if v:
            raise ValueError("Threshold rules apply to every context and take no contexts")
        return v


class SignatureRule(_SeverityModel):
    """A magic-byte signature checked regardless of the declared type."""

    id: str
    kind: RuleKind
    signature: str
    description: str
    allowed_media_types: list[str] = Field(default_factory=list)


class FileCategory(BaseModel):
    """What an upload category accepts."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    extensions: list[str]
    media_types: list[str]
    max_size: int = Field(gt=0)

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        for ext in v:
            if not ext.startswith("."):
                raise ValueError(f"Extensions must start with '.', got: {ext!r}")
        return [ext.lower() for ext in v]


class RuleCatalog(BaseModel):
    """The complete, versioned rule set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str = Field(min_length=1)

    # Binary subjects
    categories: dict[str, FileCategory]
    media_signatures: dict[str, list[str]]
    extension_media_types: dict[str, list[str]]
    container_signatures: list[SignatureRule]
    zip_container_media_types: list[str]
    executable_extensions: list[str]
    compound_extensions: list[str]
    dangerous_media_types: list[str]
    reserved_names: list[str]
    system_file_names: list[str]
    suspicious_name_words: list[str]
    content_rules: list[PatternRule]

    # Text subjects
    sql_rules: list[PatternRule]
    script_rules: list[PatternRule]
    context_rules: list[PatternRule]
    threshold_rules: list[ThresholdRule]
    dangerous_sql_keywords: list[str]
    dangerous_tags: list[str]
    dangerous_attributes: list[str]

    @field_validator("dangerous_sql_keywords")
    @classmethod
    def validate_keywords(cls, v: list[str]) -> list[str]:
        for keyword in v:
            if not _WORDLIST_ENTRY.match(keyword):
                raise ValueError(f"Invalid SQL keyword: {keyword!r}")
        return v

    @field_validator("dangerous_tags", "dangerous_attributes")
    @classmethod
    def validate_markup_names(cls, v: list[str]) -> list[str]:
        lowered = [name.lower() for name in v]
        for name in lowered:
            if not _MARKUP_NAME.match(name):
                raise ValueError(f"Invalid tag or attribute name: {name!r}")
        return lowered

    @field_validator("context_rules")
    @classmethod
    def validate_context_rules(cls, v: list[PatternRule]) -> list[PatternRule]:
        for rule in v:
            if not rule.contexts:
                raise ValueError(f"Context rule {rule.id} must name at least one context")
        return v


# ---------------------------------------------------------------------------
# Compiled snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledCatalog:
    """Immutable, ready-to-scan view of a :class:`RuleCatalog`."""

    version: str
    source: str
    categories: MappingProxyType[str, FileCategory]
    media_signatures: MappingProxyType[str, tuple[tuple[int | None, ...], ...]]
    extension_media_types: MappingProxyType[str, frozenset[str]]
    container_signatures: tuple[CompiledSignature, ...]
    zip_container_media_types: frozenset[str]
    executable_extensions: frozenset[str]
    compound_extensions: frozenset[str]
    dangerous_media_types: frozenset[str]
    reserved_names: frozenset[str]
    system_file_names: frozenset[str]
    suspicious_name_words: tuple[str, ...]
    content_rules: tuple[CompiledRule, ...]
    sql_rules: tuple[CompiledRule, ...]
    script_rules: tuple[CompiledRule, ...]
    context_rules: tuple[CompiledRule, ...]
    threshold_rules: tuple[CompiledThresholdRule, ...]
    dangerous_tags: tuple[str, ...]
    dangerous_attributes: tuple[str, ...]

    def context_rules_for(self, context: ContextTag) -> tuple[CompiledRule, ...]:
        return tuple(rule for rule in self.context_rules if rule.applies_to(context))

    @property
    def rule_count(self) -> int:
        return (
            len(self.content_rules)
            + len(self.sql_rules)
            + len(self.script_rules)
            + len(self.context_rules)
            + len(self.threshold_rules)
            + len(self.container_signatures)
        )


def _compile_pattern(rule_id: str, pattern: str) -> Any:
    try:
        return re2.compile(pattern)
    except Exception as e:
        raise CatalogError(f"Rule {rule_id} has an invalid pattern: {e}") from e


def _compile_rule(rule: PatternRule) -> CompiledRule:
    return CompiledRule(
        id=rule.id,
        kind=rule.kind,
        severity=rule.severity,
        description=rule.description,
        regex=_compile_pattern(rule.id, rule.pattern),
        contexts=frozenset(rule.contexts),
    )


def _wordlist_pattern(words: list[str], suffix: str = "") -> str:
    escaped = [re.escape(word).replace(r"\ ", r"\s+") for word in words]
    return r"(?i)\b(?:" + "|".join(escaped) + r")\b" + suffix


def _generated_sql_rules(catalog: RuleCatalog) -> list[PatternRule]:
    if not catalog.dangerous_sql_keywords:
        return []
    return [
        PatternRule(
            id="dangerous_sql_keyword",
            kind=RuleKind.SQL_KEYWORD,
            severity=Severity.CRITICAL,
            pattern=_wordlist_pattern(catalog.dangerous_sql_keywords),
            description="Dangerous SQL keyword or procedure",
        )
    ]


def _generated_script_rules(catalog: RuleCatalog) -> list[PatternRule]:
    rules: list[PatternRule] = []
    if catalog.dangerous_tags:
        tags = "|".join(re.escape(tag) for tag in catalog.dangerous_tags)
        rules.append(
            PatternRule(
                id="dangerous_tag",
                kind=RuleKind.DANGEROUS_TAG,
                severity=Severity.HIGH,
                pattern=r"(?i)<\s*(?:" + tags + r")\b",
                description="Markup tag that can execute or embed content",
            )
        )
    if catalog.dangerous_attributes:
        rules.append(
            PatternRule(
                id="event_handler_attribute",
                kind=RuleKind.EVENT_HANDLER_ATTRIBUTE,
                severity=Severity.HIGH,
                pattern=_wordlist_pattern(catalog.dangerous_attributes, r"\s*="),
                description="Event-handler attribute",
            )
        )
    return rules


def compile_catalog(catalog: RuleCatalog, *, source: str = "builtin") -> CompiledCatalog:
    """Compile every pattern and signature in *catalog*.

    Raises:
        CatalogError: If any pattern or signature cannot be compiled, or a
            category references nothing.
    """
    signatures: dict[str, tuple[tuple[int | None, ...], ...]] = {}
    for media_type, patterns in catalog.media_signatures.items():
        try:
            signatures[media_type.lower()] = tuple(parse_signature(p) for p in patterns)
        except ValueError as e:
            raise CatalogError(f"Signature for {media_type} is invalid: {e}") from e

    containers: list[CompiledSignature] = []
    for sig in catalog.container_signatures:
        try:
            pattern = parse_signature(sig.signature)
        except ValueError as e:
            raise CatalogError(f"Signature {sig.id} is invalid: {e}") from e
        containers.append(
            CompiledSignature(
                id=sig.id,
                kind=sig.kind,
                severity=sig.severity,
                description=sig.description,
                pattern=pattern,
                allowed_media_types=frozenset(t.lower() for t in sig.allowed_media_types),
            )
        )

    for name, category in catalog.categories.items():
        if not category.extensions or not category.media_types:
            raise CatalogError(f"Category {name} must list extensions and media types")

    seen_ids: set[str] = set()
    all_rules = [
        *catalog.content_rules,
        *catalog.sql_rules,
        *catalog.script_rules,
        *catalog.context_rules,
        *catalog.threshold_rules,
    ]
    for rule in all_rules:
        if rule.id in seen_ids:
            raise CatalogError(f"Duplicate rule id: {rule.id}")
        seen_ids.add(rule.id)

    return CompiledCatalog(
        version=catalog.version,
        source=source,
        categories=MappingProxyType(dict(catalog.categories)),
        media_signatures=MappingProxyType(signatures),
        extension_media_types=MappingProxyType(
            {
                ext.lower(): frozenset(t.lower() for t in types)
                for ext, types in catalog.extension_media_types.items()
            }
        ),
        container_signatures=tuple(containers),
        zip_container_media_types=frozenset(t.lower() for t in catalog.zip_container_media_types),
        executable_extensions=frozenset(e.lower() for e in catalog.executable_extensions),
        compound_extensions=frozenset(e.lower() for e in catalog.compound_extensions),
        dangerous_media_types=frozenset(t.lower() for t in catalog.dangerous_media_types),
        reserved_names=frozenset(n.upper() for n in catalog.reserved_names),
        system_file_names=frozenset(n.lower() for n in catalog.system_file_names),
        suspicious_name_words=tuple(w.lower() for w in catalog.suspicious_name_words),
        content_rules=tuple(_compile_rule(r) for r in catalog.content_rules),
        sql_rules=tuple(
            _compile_rule(r) for r in [*catalog.sql_rules, *_generated_sql_rules(catalog)]
        ),
        script_rules=tuple(
            _compile_rule(r) for r in [*catalog.script_rules, *_generated_script_rules(catalog)]
        ),
        context_rules=tuple(_compile_rule(r) for r in catalog.context_rules),
        threshold_rules=tuple(
            CompiledThresholdRule(
                id=r.id,
                kind=r.kind,
                severity=r.severity,
                description=r.description,
                regex=_compile_pattern(r.id, r.pattern),
                limit=r.limit,
            )
            for r in catalog.threshold_rules
        ),
        dangerous_tags=tuple(catalog.dangerous_tags),
        dangerous_attributes=tuple(catalog.dangerous_attributes),
    )


# ---------------------------------------------------------------------------
# Loading and the live store
# ---------------------------------------------------------------------------


def load_catalog_file(path: str | Path) -> RuleCatalog:
    """Read and validate a JSON catalog.

    Raises:
        CatalogError: If the file is unreadable or fails schema validation.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e
    try:
        return RuleCatalog.model_validate_json(raw)
    except ValidationError as e:
        raise CatalogError(f"Catalog {path} failed validation: {e.error_count()} error(s)") from e


def build_snapshot(path: str | Path | None = None) -> CompiledCatalog:
    """Load and compile a catalog; the built-in catalog when *path* is None."""
    if path is None:
        from noticeshield.security.default_rules import default_catalog

        return compile_catalog(default_catalog(), source="builtin")
    return compile_catalog(load_catalog_file(path), source=str(path))


class CatalogStore:
    """Holds the live catalog snapshot; single writer, many readers.

    Readers call :meth:`snapshot` once per scan and keep that reference for the
    whole scan. Writers build a complete new snapshot first and then replace
    the reference in one assignment.
    """

    def __init__(self, snapshot: CompiledCatalog) -> None:
        self._snapshot = snapshot
        self._write_lock = threading.Lock()
        self.last_error: str | None = None

    @classmethod
    def load(cls, path: str | Path | None = None) -> CatalogStore:
        """Build a store from *path* (or the built-in catalog).

        Raises:
            CatalogError: If the catalog cannot be loaded; callers should treat
                this as a startup failure.
        """
        snapshot = build_snapshot(path)
        log.info(
            "catalog_loaded",
            version=snapshot.version,
            source=snapshot.source,
            rule_count=snapshot.rule_count,
        )
        return cls(snapshot)

    def snapshot(self) -> CompiledCatalog:
        return self._snapshot

    def reload(self, path: str | Path | None = None) -> bool:
        """Swap in a freshly loaded catalog.

        Returns:
            True on success. On failure the previous snapshot stays live, the
            error is logged and kept in :attr:`last_error`, and False is
            returned.
        """
        with self._write_lock:
            previous = self._snapshot
            try:
                snapshot = build_snapshot(path)
            except CatalogError as e:
                self.last_error = str(e)
                log.error(
                    "catalog_reload_failed",
                    source=str(path) if path is not None else "builtin",
                    serving_version=previous.version,
                    error=str(e),
                )
                return False
            self._snapshot = snapshot
            self.last_error = None
        log.info(
            "catalog_reloaded",
            previous_version=previous.version,
            version=snapshot.version,
            source=snapshot.source,
        )
        return True

    def replace(self, catalog: RuleCatalog, *, source: str = "inline") -> bool:
        """Swap in an in-memory catalog, with the same guarantees as :meth:`reload`."""
        with self._write_lock:
            try:
                snapshot = compile_catalog(catalog, source=source)
            except CatalogError as e:
                self.last_error = str(e)
                log.error("catalog_reload_failed", source=source, error=str(e))
                return False
            self._snapshot = snapshot
            self.last_error = None
        log.info("catalog_reloaded", version=snapshot.version, source=source)
        return True
