"""Built-in rule catalog.

Pure data: every table here can be exported to JSON (``noticeshield catalog
export``), edited, and loaded back through ``CATALOG_PATH``. Patterns use RE2
syntax, so no look-around and no back-references.
"""

from __future__ import annotations

from typing import Any

from noticeshield.security.catalog import RuleCatalog

CATALOG_VERSION = "2024.06.1"

MIB = 1024 * 1024

# ---------------------------------------------------------------------------
# Upload categories
# ---------------------------------------------------------------------------

_CATEGORIES: dict[str, Any] = {
    "images": {
        "extensions": [".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg"],
        "media_types": [
            "image/jpeg",
            "image/jpg",
            "image/png",
            "image/gif",
            "image/webp",
            "image/bmp",
            "image/svg+xml",
        ],
        "max_size": 5 * MIB,
    },
    "documents": {
        "extensions": [".pdf", ".doc", ".docx", ".xls", ".xlsx", ".txt", ".rtf", ".odt", ".ods"],
        "media_types": [
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.ms-excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "text/plain",
            "application/rtf",
            "application/vnd.oasis.opendocument.text",
            "application/vnd.oasis.opendocument.spreadsheet",
        ],
        "max_size": 10 * MIB,
    },
    "archives": {
        "extensions": [".zip", ".rar", ".7z", ".tar", ".gz", ".tgz", ".tar.gz"],
        "media_types": [
            "application/zip",
            "application/x-zip-compressed",
            "application/x-rar-compressed",
            "application/x-7z-compressed",
            "application/x-tar",
            "application/gzip",
        ],
        "max_size": 20 * MIB,
    },
}

# ---------------------------------------------------------------------------
# Magic bytes per declared media type ("??" matches any byte)
# ---------------------------------------------------------------------------

_ZIP_HEADERS = ["50 4B 03 04", "50 4B 05 06", "50 4B 07 08"]
_OLE2_HEADER = ["D0 CF 11 E0 A1 B1 1A E1"]

_MEDIA_SIGNATURES: dict[str, list[str]] = {
    "image/jpeg": ["FF D8 FF"],
    "image/jpg": ["FF D8 FF"],
    "image/png": ["89 50 4E 47 0D 0A 1A 0A"],
    "image/gif": ["47 49 46 38 37 61", "47 49 46 38 39 61"],
    "image/webp": ["52 49 46 46 ?? ?? ?? ?? 57 45 42 50"],
    "image/bmp": ["42 4D"],
    "application/pdf": ["25 50 44 46"],
    "application/rtf": ["7B 5C 72 74 66"],
    "application/msword": _OLE2_HEADER,
    "application/vnd.ms-excel": _OLE2_HEADER,
    "application/zip": _ZIP_HEADERS,
    "application/x-zip-compressed": _ZIP_HEADERS,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": _ZIP_HEADERS,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": _ZIP_HEADERS,
    "application/vnd.oasis.opendocument.text": _ZIP_HEADERS,
    "application/vnd.oasis.opendocument.spreadsheet": _ZIP_HEADERS,
    "application/x-rar-compressed": ["52 61 72 21 1A 07"],
    "application/x-7z-compressed": ["37 7A BC AF 27 1C"],
    "application/gzip": ["1F 8B"],
}

_ZIP_CONTAINER_MEDIA_TYPES = [
    "application/zip",
    "application/x-zip-compressed",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.oasis.opendocument.text",
    "application/vnd.oasis.opendocument.spreadsheet",
]

_EXTENSION_MEDIA_TYPES: dict[str, list[str]] = {
    ".jpg": ["image/jpeg", "image/jpg"],
    ".jpeg": ["image/jpeg", "image/jpg"],
    ".png": ["image/png"],
    ".gif": ["image/gif"],
    ".webp": ["image/webp"],
    ".bmp": ["image/bmp"],
    ".svg": ["image/svg+xml"],
    ".pdf": ["application/pdf"],
    ".txt": ["text/plain"],
    ".rtf": ["application/rtf"],
    ".doc": ["application/msword"],
    ".docx": ["application/vnd.openxmlformats-officedocument.wordprocessingml.document"],
    ".xls": ["application/vnd.ms-excel"],
    ".xlsx": ["application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"],
    ".odt": ["application/vnd.oasis.opendocument.text"],
    ".ods": ["application/vnd.oasis.opendocument.spreadsheet"],
    ".zip": ["application/zip", "application/x-zip-compressed"],
    ".rar": ["application/x-rar-compressed"],
    ".7z": ["application/x-7z-compressed"],
    ".tar": ["application/x-tar"],
    ".gz": ["application/gzip"],
    ".tgz": ["application/gzip"],
    ".tar.gz": ["application/gzip"],
}

# Checked against every upload regardless of what it claims to be.
_CONTAINER_SIGNATURES: list[dict[str, Any]] = [
    {
        "id": "pe_executable",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "4D 5A",
        "description": "Windows PE/MZ executable header",
    },
    {
        "id": "elf_executable",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "7F 45 4C 46",
        "description": "ELF executable header",
    },
    {
        "id": "macho_32",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "FE ED FA CE",
        "description": "Mach-O 32-bit executable header",
    },
    {
        "id": "macho_64",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "FE ED FA CF",
        "description": "Mach-O 64-bit executable header",
    },
    {
        "id": "macho_32_le",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "CE FA ED FE",
        "description": "Mach-O 32-bit executable header (little-endian)",
    },
    {
        "id": "macho_64_le",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "CF FA ED FE",
        "description": "Mach-O 64-bit executable header (little-endian)",
    },
    {
        "id": "java_class_or_fat_binary",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "CA FE BA BE",
        "description": "Java class file or Mach-O universal binary",
    },
    {
        "id": "windows_shortcut",
        "kind": "executable_signature",
        "severity": "critical",
        "signature": "4C 00 00 00 01 14 02 00",
        "description": "Windows shortcut (LNK) header",
    },
    {
        "id": "zip_container",
        "kind": "embedded_archive",
        "severity": "high",
        "signature": "50 4B 03 04",
        "description": "ZIP archive header",
        "allowed_media_types": _ZIP_CONTAINER_MEDIA_TYPES,
    },
]

_EXECUTABLE_EXTENSIONS = [
    ".exe", ".dll", ".bat", ".cmd", ".com", ".pif", ".scr", ".msi", ".lnk", ".hta",
    ".vbs", ".vbe", ".js", ".jse", ".wsf", ".ps1", ".jar", ".app", ".deb", ".rpm",
    ".dmg", ".pkg", ".sh", ".php", ".phtml", ".asp", ".aspx", ".jsp", ".cgi", ".pl",
    ".py", ".rb",
]  # fmt: skip

_DANGEROUS_MEDIA_TYPES = [
    "application/x-executable",
    "application/x-msdownload",
    "application/x-msdos-program",
    "application/x-dosexec",
    "application/x-sh",
    "application/javascript",
    "text/javascript",
    "application/x-httpd-php",
    "text/x-php",
]

_RESERVED_NAMES = [
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
]  # fmt: skip

_SYSTEM_FILE_NAMES = ["autorun.inf", "desktop.ini", "thumbs.db", ".htaccess", "web.config"]

_SUSPICIOUS_NAME_WORDS = [
    "virus", "malware", "trojan", "backdoor", "keylogger", "rootkit", "ransomware",
]  # fmt: skip

# ---------------------------------------------------------------------------
# Text found inside file bytes (always reported as critical)
# ---------------------------------------------------------------------------

_CONTENT_RULES: list[dict[str, Any]] = [
    {
        "id": "embedded_script_tag",
        "kind": "script_tag",
        "severity": "critical",
        "pattern": r"(?i)<\s*script[\s>/]",
        "description": "Script tag embedded in file content",
    },
    {
        "id": "embedded_script_url",
        "kind": "protocol_handler",
        "severity": "critical",
        "pattern": r"(?i)\b(?:java|vb)script\s*:",
        "description": "Script URL embedded in file content",
    },
    {
        "id": "pdf_active_content",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"/JavaScript\b|/Launch\b",
        "description": "PDF JavaScript or launch action",
    },
    {
        "id": "php_open_tag",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"(?i)<\?php\b",
        "description": "PHP code block",
    },
    {
        "id": "shell_exec_call",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"(?i)\b(?:shell_exec|passthru|proc_open|popen|system|exec)\s*\(",
        "description": "Shell execution call",
    },
    {
        "id": "executable_download_url",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"(?i)https?://[^\s\"'<>]{1,200}\.(?:exe|bat|cmd|pif|scr|vbs|ps1|msi)\b",
        "description": "Link to an executable download",
    },
    {
        "id": "base64_pe_header",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"TVqQAAMAAAAEAAAA",
        "description": "Base64-encoded Windows executable",
    },
    {
        "id": "powershell_invocation",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"(?i)\bpowershell(?:\.exe)?\s+-[a-z]",
        "description": "PowerShell command line",
    },
    {
        "id": "download_cradle",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"(?i)\b(?:invoke-expression|invoke-webrequest|downloadstring|downloadfile)\b",
        "description": "Download-and-execute cradle",
    },
    {
        "id": "obfuscated_eval",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"(?i)\beval\s*\(\s*(?:base64_decode|gzinflate|gzuncompress|str_rot13)\s*\(",
        "description": "Obfuscated eval of encoded code",
    },
    {
        "id": "shell_interpreter_path",
        "kind": "malicious_content",
        "severity": "critical",
        "pattern": r"(?i)/bin/(?:ba|z|da)?sh\b|\bcmd\.exe\b",
        "description": "Shell interpreter reference",
    },
]

# ---------------------------------------------------------------------------
# SQL injection
# ---------------------------------------------------------------------------

_SQL_VERBS = r"SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|TRUNCATE|EXEC|EXECUTE|DECLARE|SHUTDOWN"

_SQL_RULES: list[dict[str, Any]] = [
    {
        "id": "sql_keyword",
        "kind": "sql_keyword",
        "severity": "medium",
        "pattern": (
            r"(?i)\b(?:SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|TRUNCATE|UNION"
            r"|EXEC|EXECUTE)\b"
        ),
        "description": "SQL statement keyword",
    },
    {
        "id": "numeric_tautology",
        "kind": "boolean_injection",
        "severity": "high",
        "pattern": r"(?i)\b(?:OR|AND)\s+['\"]?\d+['\"]?\s*(?:=|<>|!=|<|>|\bLIKE\b)\s*['\"]?\d+",
        "description": "Boolean tautology on numeric literals",
    },
    {
        "id": "quoted_tautology",
        "kind": "boolean_injection",
        "severity": "high",
        "pattern": r"(?i)['\"]\s*(?:OR|AND)\b\s*['\"]?[\w-]*['\"]?\s*(?:=|\bLIKE\b)\s*['\"]?[\w-]*",
        "description": "Quote break followed by a boolean comparison",
    },
    {
        "id": "union_select",
        "kind": "union_injection",
        "severity": "high",
        "pattern": (
            r"(?is)\bUNION\b(?:\s|/\*.*?\*/)+"
            r"(?:(?:ALL|DISTINCT)\b(?:\s|/\*.*?\*/)+)?SELECT\b"
        ),
        "description": "UNION SELECT",
    },
    {
        "id": "stacked_query",
        "kind": "stacked_query",
        "severity": "high",
        "pattern": r"(?i);\s*(?:" + _SQL_VERBS + r")\b",
        "description": "Statement stacked after a semicolon",
    },
    {
        "id": "time_delay",
        "kind": "time_based_injection",
        "severity": "high",
        "pattern": r"(?i)\b(?:SLEEP|BENCHMARK|PG_SLEEP)\s*\(|\bWAITFOR\s+(?:DELAY|TIME)\b",
        "description": "Time-delay function",
    },
    {
        "id": "sql_comment",
        "kind": "sql_comment",
        "severity": "medium",
        "pattern": r"--(?:\s|$)|/\*|\*/|['\"]\s*#",
        "description": "SQL comment marker",
    },
    {
        "id": "schema_probe",
        "kind": "schema_probe",
        "severity": "high",
        "pattern": (
            r"(?i)\b(?:INFORMATION_SCHEMA|PG_CATALOG|PG_SHADOW|SYSOBJECTS|SYSCOLUMNS"
            r"|SQLITE_MASTER|MYSQL\.USER)\b"
        ),
        "description": "System catalog reference",
    },
    {
        "id": "system_variable",
        "kind": "sql_function",
        "severity": "medium",
        "pattern": r"@@[A-Za-z_]\w*",
        "description": "Server system variable",
    },
    {
        "id": "system_function",
        "kind": "sql_function",
        "severity": "medium",
        "pattern": (
            r"(?i)\b(?:USER|DATABASE|VERSION|SCHEMA)\s*\(\s*\)"
            r"|\b(?:CURRENT_USER|SESSION_USER|SYSTEM_USER)\b"
        ),
        "description": "Identity or version function",
    },
    {
        "id": "file_access",
        "kind": "file_access",
        "severity": "high",
        "pattern": r"(?i)\bLOAD_FILE\s*\(|\bINTO\s+(?:OUT|DUMP)FILE\b|\bFROM\s+PROGRAM\b",
        "description": "Server-side file access",
    },
    {
        "id": "string_function",
        "kind": "sql_function",
        "severity": "low",
        "pattern": r"(?i)\b(?:CONCAT|CAST|CONVERT|SUBSTRING|SUBSTR|ASCII|CHAR|CHR|HEX|UNHEX)\s*\(",
        "description": "String or cast function",
    },
    {
        "id": "blind_conditional",
        "kind": "boolean_injection",
        "severity": "medium",
        "pattern": r"(?i)\bCASE\s+WHEN\b|\bIF\s*\([^()]*,[^()]*,[^()]*\)",
        "description": "Conditional expression used for blind injection",
    },
    {
        "id": "subselect",
        "kind": "union_injection",
        "severity": "high",
        "pattern": r"(?i)\(\s*SELECT\b",
        "description": "Parenthesised sub-select",
    },
    {
        "id": "group_by_having",
        "kind": "sql_keyword",
        "severity": "medium",
        "pattern": r"(?is)\bGROUP\s+BY\b.{0,120}\bHAVING\b",
        "description": "GROUP BY ... HAVING probe",
    },
    {
        "id": "order_by_ordinal",
        "kind": "sql_keyword",
        "severity": "medium",
        "pattern": r"(?i)\bORDER\s+BY\s+\d+",
        "description": "ORDER BY column ordinal probe",
    },
]

_DANGEROUS_SQL_KEYWORDS = [
    "EXEC",
    "XP_CMDSHELL",
    "SP_EXECUTESQL",
    "SP_OACREATE",
    "SP_OAMETHOD",
    "SP_OADESTROY",
    "OPENROWSET",
    "OPENDATASOURCE",
    "OPENQUERY",
    "CMDSHELL",
    "BULK INSERT",
]

# ---------------------------------------------------------------------------
# Script injection
# ---------------------------------------------------------------------------

_SCRIPT_RULES: list[dict[str, Any]] = [
    {
        "id": "script_tag",
        "kind": "script_tag",
        "severity": "critical",
        "pattern": r"(?i)<\s*script\b",
        "description": "Script tag",
    },
    {
        "id": "script_url",
        "kind": "protocol_handler",
        "severity": "high",
        "pattern": (
            r"(?i)\bj\s*a\s*v\s*a\s*s\s*c\s*r\s*i\s*p\s*t\s*:"
            r"|\bv\s*b\s*s\s*c\s*r\s*i\s*p\s*t\s*:|\blivescript\s*:"
        ),
        "description": "Script URL scheme",
    },
    {
        "id": "data_uri_markup",
        "kind": "protocol_handler",
        "severity": "high",
        "pattern": (
            r"(?i)\bdata:\s*(?:text/html|text/javascript|application/(?:x-)?javascript"
            r"|image/svg\+xml)\s*[;,]"
        ),
        "description": "data: URI carrying markup or script",
    },
    {
        "id": "css_expression",
        "kind": "style_injection",
        "severity": "high",
        "pattern": r"(?i)\bexpression\s*\(",
        "description": "CSS expression()",
    },
    {
        "id": "css_script_url",
        "kind": "style_injection",
        "severity": "high",
        "pattern": r"(?i)url\s*\(\s*['\"]?\s*(?:javascript|vbscript|data)\s*:",
        "description": "CSS url() with a script or data scheme",
    },
    {
        "id": "css_import",
        "kind": "style_injection",
        "severity": "medium",
        "pattern": r"(?i)@import\b",
        "description": "CSS @import",
    },
    {
        "id": "template_delimiters",
        "kind": "template_injection",
        "severity": "medium",
        "pattern": r"(?s)\{\{.*?\}\}|\$\{.*?\}|<%.*?%>|\{%.*?%\}",
        "description": "Template expression delimiters",
    },
    {
        "id": "hidden_markup",
        "kind": "hidden_markup",
        "severity": "medium",
        "pattern": r"<!--|<!\[CDATA\[",
        "description": "HTML comment or CDATA section",
    },
    {
        "id": "script_sink",
        "kind": "script_call",
        "severity": "medium",
        "pattern": (
            r"(?i)\b(?:eval|alert|prompt|confirm|setTimeout|setInterval)\s*\("
            r"|\bdocument\s*\.\s*(?:cookie|write|domain)\b|\bwindow\s*\.\s*location\b"
        ),
        "description": "Script sink or dialog call",
    },
]

_DANGEROUS_TAGS = [
    "script", "object", "embed", "applet", "meta", "iframe", "frame", "frameset",
    "link", "style", "base", "form", "input", "button", "textarea", "select",
    "option", "optgroup", "fieldset", "legend", "bgsound", "sound", "xml", "import",
    "layer", "ilayer", "nolayer", "svg", "math",
]  # fmt: skip

_DANGEROUS_ATTRIBUTES = [
    "onabort", "onactivate", "onafterprint", "onafterupdate", "onanimationstart",
    "onbeforeactivate", "onbeforecopy", "onbeforecut", "onbeforedeactivate",
    "onbeforeeditfocus", "onbeforepaste", "onbeforeprint", "onbeforeunload",
    "onbeforeupdate", "onblur", "onbounce", "oncellchange", "onchange", "onclick",
    "oncontextmenu", "oncontrolselect", "oncopy", "oncut", "ondataavailable",
    "ondatasetchanged", "ondatasetcomplete", "ondblclick", "ondeactivate", "ondrag",
    "ondragend", "ondragenter", "ondragleave", "ondragover", "ondragstart", "ondrop",
    "onerror", "onerrorupdate", "onfilterchange", "onfinish", "onfocus", "onfocusin",
    "onfocusout", "onhashchange", "onhelp", "oninput", "oninvalid", "onkeydown",
    "onkeypress", "onkeyup", "onlayoutcomplete", "onload", "onlosecapture",
    "onmessage", "onmousedown", "onmouseenter", "onmouseleave", "onmousemove",
    "onmouseout", "onmouseover", "onmouseup", "onmousewheel", "onmove", "onmoveend",
    "onmovestart", "onpageshow", "onpaste", "onpointerdown", "onpointerover",
    "onpropertychange", "onreadystatechange", "onreset", "onresize", "onresizeend",
    "onresizestart", "onrowenter", "onrowexit", "onrowsdelete", "onrowsinserted",
    "onscroll", "onsearch", "onselect", "onselectionchange", "onselectstart",
    "onstart", "onstop", "onsubmit", "ontoggle", "ontouchstart", "ontransitionend",
    "onunload", "onwheel",
]  # fmt: skip

# ---------------------------------------------------------------------------
# Context-specific and density rules
# ---------------------------------------------------------------------------

_CONTEXT_RULES: list[dict[str, Any]] = [
    {
        "id": "where_tautology",
        "kind": "boolean_injection",
        "severity": "high",
        "pattern": r"(?i)\b(?:OR|AND)\s+['\"]?\w+['\"]?\s*=\s*['\"]?\w+",
        "description": "Comparison smuggled into a WHERE clause",
        "contexts": ["sql_where_clause"],
    },
    {
        "id": "where_always_true",
        "kind": "boolean_injection",
        "severity": "high",
        "pattern": r"(?i)\bOR\s+(?:TRUE|NOT\s+FALSE)\b",
        "description": "Always-true OR in a WHERE clause",
        "contexts": ["sql_where_clause"],
    },
    {
        "id": "order_by_keyword",
        "kind": "context_violation",
        "severity": "high",
        "pattern": (
            r"(?i)\b(?:SELECT|INSERT|UPDATE|DELETE|DROP|UNION|CREATE|ALTER|EXEC|EXECUTE"
            r"|CASE|WHEN|THEN|IF|SLEEP|BENCHMARK|FROM|WHERE|AND|OR|LIMIT|INTO)\b"
        ),
        "description": "SQL keyword in an ORDER BY value",
        "contexts": ["sql_order_by"],
    },
    {
        "id": "order_by_expression",
        "kind": "context_violation",
        "severity": "high",
        "pattern": r"[();'\"`]|--|/\*",
        "description": "Expression syntax in an ORDER BY value",
        "contexts": ["sql_order_by"],
    },
    {
        "id": "limit_charset",
        "kind": "context_violation",
        "severity": "high",
        "pattern": r"[^\d\s,]",
        "description": "LIMIT value contains more than digits, commas and whitespace",
        "contexts": ["sql_limit"],
    },
    {
        "id": "body_inline_handler",
        "kind": "event_handler_attribute",
        "severity": "high",
        "pattern": r"(?i)<[^>]*[\s/\"']on[a-z]+\s*=",
        "description": "Inline event handler inside a tag",
        "contexts": ["html_body"],
    },
    {
        "id": "body_style_block",
        "kind": "style_injection",
        "severity": "high",
        "pattern": r"(?i)<\s*style\b",
        "description": "Style block in HTML body",
        "contexts": ["html_body"],
    },
    {
        "id": "attribute_breakout",
        "kind": "context_violation",
        "severity": "medium",
        "pattern": r"[\"'<>`]",
        "description": "Characters that close an attribute value",
        "contexts": ["html_attribute"],
    },
    {
        "id": "attribute_handler",
        "kind": "event_handler_attribute",
        "severity": "high",
        "pattern": r"(?i)(?:^|[\s\"'/])on[a-z]+\s*=",
        "description": "Event handler smuggled through an attribute value",
        "contexts": ["html_attribute"],
    },
]

_THRESHOLD_RULES: list[dict[str, Any]] = [
    {
        "id": "suspicious_character_density",
        "kind": "suspicious_characters",
        "severity": "medium",
        "pattern": r"['\";\\]",
        "description": "Quote, semicolon or backslash characters",
        "limit": 2,
    },
    {
        "id": "encoded_sequence_density",
        "kind": "encoded_payload",
        "severity": "medium",
        "pattern": r"%[0-9A-Fa-f]{2}|&#[0-9]+;|&#[xX][0-9A-Fa-f]+;",
        "description": "Percent-escapes or numeric character references",
        "limit": 3,
    },
]

DEFAULT_CATALOG_DATA: dict[str, Any] = {
    "version": CATALOG_VERSION,
    "categories": _CATEGORIES,
    "media_signatures": _MEDIA_SIGNATURES,
    "extension_media_types": _EXTENSION_MEDIA_TYPES,
    "container_signatures": _CONTAINER_SIGNATURES,
    "zip_container_media_types": _ZIP_CONTAINER_MEDIA_TYPES,
    "executable_extensions": _EXECUTABLE_EXTENSIONS,
    "compound_extensions": [".tar.gz", ".tar.bz2", ".tar.xz"],
    "dangerous_media_types": _DANGEROUS_MEDIA_TYPES,
    "reserved_names": _RESERVED_NAMES,
    "system_file_names": _SYSTEM_FILE_NAMES,
    "suspicious_name_words": _SUSPICIOUS_NAME_WORDS,
    "content_rules": _CONTENT_RULES,
    "sql_rules": _SQL_RULES,
    "script_rules": _SCRIPT_RULES,
    "context_rules": _CONTEXT_RULES,
    "threshold_rules": _THRESHOLD_RULES,
    "dangerous_sql_keywords": _DANGEROUS_SQL_KEYWORDS,
    "dangerous_tags": _DANGEROUS_TAGS,
    "dangerous_attributes": _DANGEROUS_ATTRIBUTES,
}


def default_catalog() -> RuleCatalog:
    """Validate and return the built-in catalog."""
    return RuleCatalog.model_validate(DEFAULT_CATALOG_DATA)
