"""Best-effort defanging of untrusted text for render-only contexts.

Sanitizing is independent of scanning and is never a substitute for
parameterized queries or context-aware templating. Neither :func:`sanitize`
nor :func:`render_safe_html` raises; on internal failure they log and return
an empty string.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import re2

from noticeshield.logging import get_logger
from noticeshield.security.catalog import CompiledCatalog

log = get_logger("noticeshield.security.sanitizer")

_ENTITY_OR_METACHAR = re2.compile(
    r"&(?:#[0-9]{1,7}|#[xX][0-9A-Fa-f]{1,6}|[A-Za-z][A-Za-z0-9]{1,31});|[&<>\"']"
)
_ESCAPES = {"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#x27;"}

_SCRIPT_SCHEME = re2.compile(r"(?i)(?:java|vb)script\s*:")

_MARKUP_TAG = re2.compile(r"<\s*(/?)\s*([A-Za-z][A-Za-z0-9]*)\b([^<>]*)>")
_TAG_ATTRIBUTE = re2.compile(
    r"([A-Za-z_:][-A-Za-z0-9_:.]*)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s\"'=<>`]+)))?"
)
_UNSAFE_URL_SCHEMES = ("javascript:", "vbscript:", "data:")

# Nesting deeper than this is flattened in one linear step.
_MAX_PASSES = 8


@dataclass(frozen=True)
class SanitizePolicy:
    """What :func:`sanitize` strips before entity-encoding."""

    dangerous_tags: tuple[str, ...]
    dangerous_attributes: tuple[str, ...]
    strip_schemes: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "dangerous_tags", tuple(self.dangerous_tags))
        object.__setattr__(self, "dangerous_attributes", tuple(self.dangerous_attributes))

    @classmethod
    def from_catalog(
        cls, catalog: CompiledCatalog, *, strip_schemes: bool = True
    ) -> SanitizePolicy:
        return cls(
            dangerous_tags=catalog.dangerous_tags,
            dangerous_attributes=catalog.dangerous_attributes,
            strip_schemes=strip_schemes,
        )


@dataclass(frozen=True)
class _CompiledPolicy:
    tags: Any
    attributes: Any
    strip_schemes: bool


def _alternation(names: Iterable[str]) -> str:
    return "|".join(re.escape(name) for name in names)


@lru_cache(maxsize=32)
def _compile_policy(policy: SanitizePolicy) -> _CompiledPolicy:
    tags = None
    if policy.dangerous_tags:
        tags = re2.compile(r"(?i)<\s*/?\s*(?:" + _alternation(policy.dangerous_tags) + r")\b[^>]*>")
    attributes = None
    if policy.dangerous_attributes:
        attributes = re2.compile(
            r"(?i)[\s/](?:"
            + _alternation(policy.dangerous_attributes)
            + r")\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>]*)"
        )
    return _CompiledPolicy(tags=tags, attributes=attributes, strip_schemes=policy.strip_schemes)


def encode_html(text: str) -> str:
    """Entity-encode ``& < > " '``, leaving existing entities intact.

    ``encode_html(encode_html(x)) == encode_html(x)``.
    """
    parts: list[str] = []
    last = 0
    for match in _ENTITY_OR_METACHAR.finditer(text):
        token = match.group(0)
        start = match.start()
        parts.append(text[last:start])
        parts.append(token if len(token) > 1 else _ESCAPES[token])
        last = start + len(token)
    parts.append(text[last:])
    return "".join(parts)


def _single_pass(text: str, compiled: _CompiledPolicy) -> str:
    if compiled.tags is not None:
        text = compiled.tags.sub("", text)
    if compiled.attributes is not None:
        text = compiled.attributes.sub("", text)
    text = encode_html(text)
    if compiled.strip_schemes:
        text = _SCRIPT_SCHEME.sub("", text)
    return text


def _flatten(text: str, compiled: _CompiledPolicy) -> str:
    """Single linear step that no further pass can change.

    Every ``<`` is encoded, so no tag remains; without ``=`` no attribute
    assignment remains; without ``:`` no script scheme remains.
    """
    if compiled.attributes is not None:
        text = text.replace("=", "")
    if compiled.strip_schemes:
        text = text.replace(":", "")
    return encode_html(text)


def sanitize(text: str, policy: SanitizePolicy) -> str:
    """Strip dangerous tags and attributes, encode metacharacters, drop script schemes.

    Passes repeat until the text stops changing, so nested constructs such
    as ``<scr<script>ipt>`` cannot reassemble and the result is idempotent:
    ``sanitize(sanitize(x, p), p) == sanitize(x, p)``. Input still changing
    after ``_MAX_PASSES`` passes is flattened instead, which drops every
    ``=`` and ``:`` the policy would otherwise strip around, so the cost
    stays linear in the input length.

    Args:
        text: Untrusted input. Anything other than ``str`` yields ``""``.
        policy: Tags, attributes and scheme handling to apply.
    """
    if not isinstance(text, str):
        return ""
    try:
        compiled = _compile_policy(policy)
        current = _single_pass(text, compiled)
        for _ in range(_MAX_PASSES - 1):
            following = _single_pass(current, compiled)
            if following == current:
                return current
            current = following
        log.warning("sanitize_flattened", length=len(text))
        return _flatten(current, compiled)
    except Exception as e:
        log.error("sanitize_failed", error=type(e).__name__)
        return ""


def _safe_attribute_value(value: str) -> bool:
    compact = "".join(ch for ch in html.unescape(value) if not ch.isspace() and ord(ch) >= 32)
    return not compact.lower().startswith(_UNSAFE_URL_SCHEMES)


def _render_tag(
    closing: str,
    name: str,
    raw_attributes: str,
    allowed_attributes: frozenset[str],
) -> str:
    if closing:
        return f"</{name}>"
    kept: list[str] = []
    for match in _TAG_ATTRIBUTE.finditer(raw_attributes):
        attr = match.group(1).lower()
        if attr not in allowed_attributes or attr.startswith("on"):
            continue
        value = match.group(2)
        if value is None:
            value = match.group(3)
        if value is None:
            value = match.group(4)
        if value is None:
            kept.append(attr)
            continue
        if not _safe_attribute_value(value):
            continue
        kept.append(f'{attr}="{encode_html(value)}"')
    return f"<{name}{''.join(' ' + a for a in kept)}>"


def render_safe_html(
    text: str,
    allowed_tags: Iterable[str],
    allowed_attributes: Iterable[str],
) -> str:
    """Keep allow-listed tags and attributes; entity-encode everything else.

    Attribute values that start with ``javascript:``, ``vbscript:`` or
    ``data:`` (after entity decoding and whitespace removal) are dropped, as
    are ``on*`` attributes even when allow-listed.
    """
    if not isinstance(text, str):
        return ""
    try:
        tags = frozenset(t.lower() for t in allowed_tags)
        attributes = frozenset(a.lower() for a in allowed_attributes)
        parts: list[str] = []
        last = 0
        for match in _MARKUP_TAG.finditer(text):
            start = match.start()
            token = match.group(0)
            parts.append(encode_html(text[last:start]))
            name = match.group(2).lower()
            if name in tags:
                parts.append(_render_tag(match.group(1), name, match.group(3), attributes))
            else:
                parts.append(encode_html(token))
            last = start + len(token)
        parts.append(encode_html(text[last:]))
        return "".join(parts)
    except Exception as e:
        log.error("render_safe_html_failed", error=type(e).__name__)
        return ""
