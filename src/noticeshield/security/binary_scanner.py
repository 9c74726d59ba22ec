"""Binary scanner: uploaded file bytes plus their declared metadata.

Every check runs on every scan (no early exit) so the aggregator sees the full
evidence set. Each check is isolated: if one raises, it is recorded as a
``RULE_EVALUATION_ERROR`` finding and the others still run.

Only bounded regions of the buffer are inspected: the first 16 bytes for
signatures, ``entropy_sample_bytes`` for entropy, ``content_scan_prefix_bytes``
for content patterns and embedded archives, and the trailing ZIP
end-of-central-directory window.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import unquote

from noticeshield.security.catalog import CompiledCatalog, FileCategory
from noticeshield.security.models import (
    BinarySubject,
    Finding,
    InvalidInputError,
    RuleKind,
    ScanLimits,
    Severity,
    clip_fragment,
)
from noticeshield.security.rules import rule_error_finding, run_rules, signature_matches

SIGNATURE_HEADER_BYTES = 16
MAX_NAME_BYTES = 255
MIN_FILE_BYTES = 10

_ZIP_LOCAL_HEADER = b"PK\x03\x04"
_ZIP_END_OF_DIRECTORY = b"PK\x05\x06"
# 22-byte EOCD record plus the largest possible archive comment
_ZIP_EOCD_WINDOW = 22 + 65535

_FORBIDDEN_NAME_CHARS = frozenset('<>:"|?*')


@dataclass(frozen=True)
class _Upload:
    """Normalized view of a subject, computed once per scan."""

    data: bytes
    name: str
    basename: str
    extension: str
    extension_segments: tuple[str, ...]
    media_type: str
    declared_size: int
    category_name: str
    category: FileCategory


def shannon_entropy(data: bytes) -> float:
    """Shannon entropy of *data* in bits per byte (0.0 for empty input)."""
    if not data:
        return 0.0
    total = len(data)
    entropy = 0.0
    for count in Counter(data).values():
        p = count / total
        entropy -= p * math.log2(p)
    return entropy


def normalize_media_type(media_type: str) -> str:
    """Drop parameters (``; charset=...``) and lowercase."""
    return media_type.split(";", 1)[0].strip().lower()


def split_extensions(basename: str, compound: frozenset[str]) -> tuple[str, tuple[str, ...]]:
    """Return ``(final_extension, all_extension_segments)`` for a file name.

    Trailing dots and spaces are ignored (Windows strips them on save) and a
    leading dot marks a hidden file rather than an extension. Allow-listed
    compound extensions such as ``.tar.gz`` count as a single segment.
    """
    cleaned = basename.rstrip(". ").lower().lstrip(".")
    parts = cleaned.split(".")
    if len(parts) < 2:
        return "", ()
    segments = ["." + part for part in parts[1:]]
    if len(segments) >= 2 and segments[-2] + segments[-1] in compound:
        segments[-2:] = [segments[-2] + segments[-1]]
    return segments[-1], tuple(segments)


def _validate(subject: BinarySubject, catalog: CompiledCatalog) -> _Upload:
    data = subject.data
    if isinstance(data, (bytearray, memoryview)):
        data = bytes(data)
    if not isinstance(data, bytes):
        raise InvalidInputError("File content must be bytes")
    if not isinstance(subject.declared_name, str) or not subject.declared_name.strip():
        raise InvalidInputError("Declared file name is required")
    if not isinstance(subject.declared_media_type, str):
        raise InvalidInputError("Declared media type must be a string")
    size = subject.declared_size
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise InvalidInputError("Declared size must be a non-negative integer")
    category = catalog.categories.get(subject.category)
    if category is None:
        raise InvalidInputError(f"Unknown upload category: {subject.category!r}")

    name = subject.declared_name
    basename = name.replace("\\", "/").rsplit("/", 1)[-1]
    extension, segments = split_extensions(basename, catalog.compound_extensions)
    return _Upload(
        data=data,
        name=name,
        basename=basename,
        extension=extension,
        extension_segments=segments,
        media_type=normalize_media_type(subject.declared_media_type),
        declared_size=size,
        category_name=subject.category,
        category=category,
    )


# ---------------------------------------------------------------------------
# Filename safety
# ---------------------------------------------------------------------------


def _check_filename(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    findings: list[Finding] = []
    name = upload.name

    if "\x00" in name:
        findings.append(
            Finding(
                kind=RuleKind.NULL_BYTE,
                severity=Severity.CRITICAL,
                detail="File name contains a null byte",
                rule_id="filename_null_byte",
                offset=name.index("\x00"),
            )
        )

    once = unquote(name)
    variants = (name, once, unquote(once))
    if any(".." in v or "/" in v or "\\" in v for v in variants):
        findings.append(
            Finding(
                kind=RuleKind.PATH_TRAVERSAL,
                severity=Severity.CRITICAL,
                detail="File name contains a path separator or traversal sequence",
                rule_id="filename_path_traversal",
                matched_fragment=clip_fragment(name, limits.fragment_max_chars),
            )
        )

    bad = [
        c
        for c in name
        if c != "\x00" and (ord(c) < 32 or ord(c) == 127 or c in _FORBIDDEN_NAME_CHARS)
    ]
    if bad:
        findings.append(
            Finding(
                kind=RuleKind.CONTROL_CHARACTER,
                severity=Severity.MEDIUM,
                detail=f"File name contains {len(bad)} control or reserved character(s)",
                rule_id="filename_control_character",
                offset=name.index(bad[0]),
            )
        )

    if len(name.encode("utf-8", errors="surrogatepass")) > MAX_NAME_BYTES:
        findings.append(
            Finding(
                kind=RuleKind.NAME_TOO_LONG,
                severity=Severity.MEDIUM,
                detail=f"File name exceeds {MAX_NAME_BYTES} bytes",
                rule_id="filename_too_long",
            )
        )

    base = upload.basename.rstrip(". ")
    stem = base.split(".", 1)[0].strip().upper()
    if stem in catalog.reserved_names:
        findings.append(
            Finding(
                kind=RuleKind.RESERVED_NAME,
                severity=Severity.HIGH,
                detail=f"File name uses reserved device name {stem}",
                rule_id="filename_reserved_device",
            )
        )
    elif base.lower() in catalog.system_file_names:
        findings.append(
            Finding(
                kind=RuleKind.RESERVED_NAME,
                severity=Severity.HIGH,
                detail="File name matches a system or auto-run file",
                rule_id="filename_system_file",
                matched_fragment=clip_fragment(base, limits.fragment_max_chars),
            )
        )

    if base.startswith(".") and base not in (".", ".."):
        findings.append(
            Finding(
                kind=RuleKind.HIDDEN_FILE,
                severity=Severity.MEDIUM,
                detail="Hidden (dot-prefixed) file name",
                rule_id="filename_hidden",
            )
        )

    lowered = base.lower()
    for word in catalog.suspicious_name_words:
        if word in lowered:
            findings.append(
                Finding(
                    kind=RuleKind.SUSPICIOUS_NAME,
                    severity=Severity.LOW,
                    detail="File name contains a malware-related word",
                    rule_id="filename_suspicious_word",
                    offset=lowered.index(word),
                    matched_fragment=word,
                )
            )
            break

    return findings


# ---------------------------------------------------------------------------
# Extension and media type consistency
# ---------------------------------------------------------------------------


def _check_extension(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    findings: list[Finding] = []
    ext = upload.extension

    if len(upload.extension_segments) > 1:
        findings.append(
            Finding(
                kind=RuleKind.DOUBLE_EXTENSION,
                severity=Severity.HIGH,
                detail="File name has multiple extensions",
                rule_id="double_extension",
                matched_fragment=clip_fragment(
                    "".join(upload.extension_segments), limits.fragment_max_chars
                ),
            )
        )

    if ext in catalog.executable_extensions:
        findings.append(
            Finding(
                kind=RuleKind.DANGEROUS_EXTENSION,
                severity=Severity.CRITICAL,
                detail=f"Executable extension {ext}",
                rule_id="executable_extension",
                matched_fragment=ext,
            )
        )

    if ext not in upload.category.extensions:
        findings.append(
            Finding(
                kind=RuleKind.DISALLOWED_EXTENSION,
                severity=Severity.HIGH,
                detail=(
                    f"Extension {ext} is not allowed for {upload.category_name}"
                    if ext
                    else f"Files without an extension are not allowed for {upload.category_name}"
                ),
                rule_id="extension_not_allowed",
            )
        )

    return findings


def _check_media_type(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    findings: list[Finding] = []
    media_type = upload.media_type
    shown = media_type or "(none)"

    if media_type in catalog.dangerous_media_types:
        findings.append(
            Finding(
                kind=RuleKind.DANGEROUS_MEDIA_TYPE,
                severity=Severity.CRITICAL,
                detail=f"Declared media type {media_type} is executable",
                rule_id="dangerous_media_type",
            )
        )

    if media_type not in upload.category.media_types:
        findings.append(
            Finding(
                kind=RuleKind.DISALLOWED_MEDIA_TYPE,
                severity=Severity.HIGH,
                detail=f"Media type {shown} is not allowed for {upload.category_name}",
                rule_id="media_type_not_allowed",
            )
        )

    expected = catalog.extension_media_types.get(upload.extension)
    if expected and media_type not in expected:
        findings.append(
            Finding(
                kind=RuleKind.MEDIA_TYPE_MISMATCH,
                severity=Severity.MEDIUM,
                detail=f"Media type {shown} does not match extension {upload.extension}",
                rule_id="media_type_mismatch",
            )
        )

    return findings


# ---------------------------------------------------------------------------
# Byte-level checks
# ---------------------------------------------------------------------------


def _check_signature(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    findings: list[Finding] = []
    header = upload.data[:SIGNATURE_HEADER_BYTES]
    if not header:
        return findings

    expected = catalog.media_signatures.get(upload.media_type)
    if expected:
        if not any(signature_matches(header, pattern) for pattern in expected):
            findings.append(
                Finding(
                    kind=RuleKind.SIGNATURE_MISMATCH,
                    severity=Severity.HIGH,
                    detail=f"Leading bytes do not match {upload.media_type}",
                    rule_id="signature_mismatch",
                    offset=0,
                    matched_fragment=header.hex(" ").upper(),
                )
            )

    for signature in catalog.container_signatures:
        if upload.media_type in signature.allowed_media_types:
            continue
        if signature.matches(header):
            findings.append(
                Finding(
                    kind=signature.kind,
                    severity=signature.severity,
                    detail=signature.description,
                    rule_id=signature.id,
                    offset=0,
                    matched_fragment=header[: len(signature.pattern)].hex(" ").upper(),
                )
            )

    return findings


def _check_content(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    # latin-1 maps every byte to one code point, so offsets are byte offsets
    text = upload.data[: limits.content_scan_prefix_bytes].decode("latin-1")
    return run_rules(catalog.content_rules, text, limits, severity=Severity.CRITICAL)


def _check_entropy(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    sample = upload.data[: limits.entropy_sample_bytes]
    if not sample:
        return []
    entropy = shannon_entropy(sample)
    if entropy <= limits.entropy_threshold:
        return []
    return [
        Finding(
            kind=RuleKind.HIGH_ENTROPY,
            severity=Severity.MEDIUM,
            detail=(
                f"Entropy {entropy:.2f} bits/byte over the first {len(sample)} bytes "
                f"exceeds {limits.entropy_threshold}"
            ),
            rule_id="high_entropy",
            offset=0,
        )
    ]


def _check_embedded_archive(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    if upload.media_type in catalog.zip_container_media_types:
        return []
    findings: list[Finding] = []
    data = upload.data
    start = limits.embedded_header_region_bytes

    offset = data.find(_ZIP_LOCAL_HEADER, start, limits.content_scan_prefix_bytes)
    if offset != -1:
        findings.append(
            Finding(
                kind=RuleKind.EMBEDDED_ARCHIVE,
                severity=Severity.HIGH,
                detail="ZIP local file header found inside the file (polyglot)",
                rule_id="embedded_zip_header",
                offset=offset,
            )
        )

    offset = data.rfind(_ZIP_END_OF_DIRECTORY, max(start, len(data) - _ZIP_EOCD_WINDOW))
    if offset != -1:
        findings.append(
            Finding(
                kind=RuleKind.EMBEDDED_ARCHIVE,
                severity=Severity.HIGH,
                detail="ZIP end-of-central-directory record found near the end of the file",
                rule_id="embedded_zip_directory",
                offset=offset,
            )
        )

    return findings


def _check_size(
    upload: _Upload, catalog: CompiledCatalog, limits: ScanLimits
) -> list[Finding]:
    findings: list[Finding] = []
    actual = len(upload.data)
    declared = upload.declared_size

    if actual == 0 or declared == 0:
        findings.append(
            Finding(
                kind=RuleKind.EMPTY_FILE,
                severity=Severity.MEDIUM,
                detail="File is empty",
                rule_id="empty_file",
            )
        )
    elif actual < MIN_FILE_BYTES:
        findings.append(
            Finding(
                kind=RuleKind.SUSPICIOUSLY_SMALL,
                severity=Severity.LOW,
                detail=f"File is only {actual} bytes",
                rule_id="suspiciously_small",
            )
        )

    if abs(actual - declared) > limits.size_tolerance_bytes:
        findings.append(
            Finding(
                kind=RuleKind.SIZE_MISMATCH,
                severity=Severity.LOW,
                detail=f"Declared size {declared} differs from actual size {actual}",
                rule_id="size_mismatch",
            )
        )

    max_size = upload.category.max_size
    if max(actual, declared) > max_size:
        findings.append(
            Finding(
                kind=RuleKind.FILE_TOO_LARGE,
                severity=Severity.MEDIUM,
                detail=f"File exceeds the {max_size} byte limit for {upload.category_name}",
                rule_id="file_too_large",
            )
        )

    return findings


_Check = Callable[[_Upload, CompiledCatalog, ScanLimits], list[Finding]]

_CHECKS: tuple[tuple[str, _Check], ...] = (
    ("filename_checks", _check_filename),
    ("extension_checks", _check_extension),
    ("media_type_checks", _check_media_type),
    ("signature_checks", _check_signature),
    ("content_checks", _check_content),
    ("entropy_checks", _check_entropy),
    ("embedded_archive_checks", _check_embedded_archive),
    ("size_checks", _check_size),
)


def scan_binary(
    subject: BinarySubject,
    catalog: CompiledCatalog,
    limits: ScanLimits | None = None,
) -> list[Finding]:
    """Run every binary check against *subject*.

    Args:
        subject: File bytes and the metadata the uploader declared.
        catalog: Compiled catalog snapshot, read-only for the whole scan.
        limits: Resource bounds; defaults to :class:`ScanLimits`.

    Returns:
        All findings, in check order. An empty list means nothing fired.

    Raises:
        InvalidInputError: If the subject is malformed or names an unknown
            category. Raised before any check runs.
    """
    limits = limits or ScanLimits()
    upload = _validate(subject, catalog)

    findings: list[Finding] = []
    for check_id, check in _CHECKS:
        try:
            findings.extend(check(upload, catalog, limits))
        except Exception as e:
            findings.append(rule_error_finding(check_id, e))
    return findings
