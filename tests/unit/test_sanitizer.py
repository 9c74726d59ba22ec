"""Unit tests for the sanitizer and the allow-list HTML renderer."""

from __future__ import annotations

import pytest

from noticeshield.security import sanitizer
from noticeshield.security.catalog import CompiledCatalog
from noticeshield.security.sanitizer import (
    SanitizePolicy,
    encode_html,
    render_safe_html,
    sanitize,
)

RICH_TAGS = ("p", "br", "b", "i", "strong", "em", "a")
RICH_ATTRIBUTES = ("href", "title", "target")


@pytest.fixture
def policy(catalog: CompiledCatalog) -> SanitizePolicy:
    return SanitizePolicy.from_catalog(catalog)


# =========================================================================
# 1. sanitize
# =========================================================================


class TestSanitize:
    """Tag and attribute stripping, encoding and scheme removal."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("hello world", "hello world"),
            ("<script>alert(1)</script>", "alert(1)"),
            ("<SCRIPT src=x></SCRIPT>done", "done"),
            ('<img src=x onerror="alert(1)">', "&lt;img src=x&gt;"),
            ("<img src=x onerror=alert(1)>", "&lt;img src=x&gt;"),
            ("Tom & Jerry <3", "Tom &amp; Jerry &lt;3"),
            ("it's \"quoted\"", "it&#x27;s &quot;quoted&quot;"),
            ("already &amp; encoded", "already &amp; encoded"),
            ("<iframe src=//evil></iframe>", ""),
        ],
    )
    def test_expected_output(self, policy: SanitizePolicy, text: str, expected: str) -> None:
        assert sanitize(text, policy) == expected

    def test_script_scheme_stripped(self, policy: SanitizePolicy) -> None:
        result = sanitize('<a href="javascript:alert(1)">x</a>', policy)
        assert "javascript:" not in result.lower()
        assert result == "&lt;a href=&quot;alert(1)&quot;&gt;x&lt;/a&gt;"

    def test_vbscript_scheme_stripped(self, policy: SanitizePolicy) -> None:
        assert sanitize("VBScript :msgbox(1)", policy) == "msgbox(1)"

    def test_scheme_kept_when_disabled(self, catalog: CompiledCatalog) -> None:
        keep = SanitizePolicy.from_catalog(catalog, strip_schemes=False)
        assert "javascript:" in sanitize("javascript:alert(1)", keep)

    def test_nested_tags_cannot_reassemble(self, policy: SanitizePolicy) -> None:
        result = sanitize("<scr<script>ipt>alert(1)</script>", policy)
        assert "<script" not in result.lower()
        assert "<" not in result

    def test_nested_scheme_cannot_reassemble(self, policy: SanitizePolicy) -> None:
        result = sanitize("javajavascript:script:alert(1)", policy)
        assert "javascript:" not in result.lower()

    def test_empty_policy_only_encodes(self) -> None:
        empty = SanitizePolicy(dangerous_tags=(), dangerous_attributes=(), strip_schemes=False)
        assert sanitize("<script>", empty) == "&lt;script&gt;"

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain",
            "<script>alert(1)</script>",
            "<scr<script>ipt>alert(1)</scr</script>ipt>",
            '<img src=x onerror="alert(1)" onload=go()>',
            "&lt;script&gt;",
            "&amp;amp;",
            "javajavascript:script:x",
            "a < b && c > d",
            "'\"<>&",
            "<<script>script>",
        ],
    )
    def test_idempotent(self, policy: SanitizePolicy, text: str) -> None:
        once = sanitize(text, policy)
        assert sanitize(once, policy) == once

    def test_policy_built_from_lists(self) -> None:
        from_lists = SanitizePolicy(dangerous_tags=["script"], dangerous_attributes=["onerror"])
        from_tuples = SanitizePolicy(dangerous_tags=("script",), dangerous_attributes=("onerror",))

        assert from_lists == from_tuples
        assert hash(from_lists) == hash(from_tuples)
        assert sanitize("hello <b>world</b>", from_lists) == "hello &lt;b&gt;world&lt;/b&gt;"
        assert sanitize('<script>x</script><i onerror="y">', from_lists) == "x&lt;i&gt;"

    @pytest.mark.parametrize("depth", [500, 2000])
    def test_deep_nesting_is_bounded(
        self, policy: SanitizePolicy, monkeypatch: pytest.MonkeyPatch, depth: int
    ) -> None:
        calls = 0
        single_pass = sanitizer._single_pass

        def _counting(text: str, compiled: object) -> str:
            nonlocal calls
            calls += 1
            return single_pass(text, compiled)  # type: ignore[arg-type]

        monkeypatch.setattr(sanitizer, "_single_pass", _counting)
        result = sanitize("java" * depth + "script:" * depth + "alert(1)", policy)

        assert calls == sanitizer._MAX_PASSES
        assert "javascript:" not in result.lower()
        assert ":" not in result
        assert result.endswith("alert(1)")

    def test_flattened_output_is_idempotent(
        self, policy: SanitizePolicy, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(sanitizer, "_MAX_PASSES", 1)
        once = sanitize('<a href="javascript:go()" onclick=x>javajavascript:script:</a>', policy)

        assert sanitize(once, policy) == once
        assert "<" not in once
        assert "=" not in once
        assert ":" not in once

    def test_deep_nesting_cost_does_not_depend_on_depth(
        self, policy: SanitizePolicy, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        counts: list[int] = []
        single_pass = sanitizer._single_pass

        for depth in (100, 1000, 10000):
            calls = 0

            def _counting(text: str, compiled: object) -> str:
                nonlocal calls
                calls += 1
                return single_pass(text, compiled)  # type: ignore[arg-type]

            monkeypatch.setattr(sanitizer, "_single_pass", _counting)
            sanitize("java" * depth + "script:" * depth, policy)
            counts.append(calls)

        assert counts[0] == counts[1] == counts[2] <= sanitizer._MAX_PASSES

    @pytest.mark.parametrize("value", [None, 42, b"<script>", ["x"]])
    def test_non_string_input(self, policy: SanitizePolicy, value: object) -> None:
        assert sanitize(value, policy) == ""  # type: ignore[arg-type]

    def test_internal_failure_returns_empty(
        self, policy: SanitizePolicy, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _explode(text: str, compiled: object) -> str:
            raise RuntimeError("boom")

        monkeypatch.setattr(sanitizer, "_single_pass", _explode)
        assert sanitize("<b>hi</b>", policy) == ""


# =========================================================================
# 2. encode_html
# =========================================================================


class TestEncodeHtml:
    """Metacharacter encoding that leaves entities alone."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("<b>", "&lt;b&gt;"),
            ("a & b", "a &amp; b"),
            ("'", "&#x27;"),
            ('"', "&quot;"),
            ("&amp;", "&amp;"),
            ("&#39;", "&#39;"),
            ("&#x27;", "&#x27;"),
            ("&bogus", "&amp;bogus"),
            ("&;", "&amp;;"),
            ("no metacharacters", "no metacharacters"),
        ],
    )
    def test_encode(self, text: str, expected: str) -> None:
        assert encode_html(text) == expected

    @pytest.mark.parametrize("text", ["<a href='x'>&</a>", "&amp;&lt;", "\"'"])
    def test_idempotent(self, text: str) -> None:
        once = encode_html(text)
        assert encode_html(once) == once


# =========================================================================
# 3. render_safe_html
# =========================================================================


class TestRenderSafeHtml:
    """Allow-listed tags survive; everything else is encoded."""

    def _render(self, text: str) -> str:
        return render_safe_html(text, RICH_TAGS, RICH_ATTRIBUTES)

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("<b>bold</b>", "<b>bold</b>"),
            ("<B>Bold</B>", "<b>Bold</b>"),
            ("<p>one<br>two</p>", "<p>one<br>two</p>"),
            ("<script>alert(1)</script>", "&lt;script&gt;alert(1)&lt;/script&gt;"),
            ("5 < 6 & 7 > 2", "5 &lt; 6 &amp; 7 &gt; 2"),
            (
                '<a href="https://example.com" onclick="x()">link</a>',
                '<a href="https://example.com">link</a>',
            ),
            ('<a href="javascript:alert(1)">x</a>', "<a>x</a>"),
            ('<a href=" jav&#x09;ascript:alert(1)">x</a>', "<a>x</a>"),
            ('<a href="data:text/html,hi">x</a>', "<a>x</a>"),
            ("<a title='hi' target=_blank>x</a>", '<a title="hi" target="_blank">x</a>'),
            ("<a title>x</a>", "<a title>x</a>"),
            ('<b class="x">y</b>', "<b>y</b>"),
        ],
    )
    def test_render(self, text: str, expected: str) -> None:
        assert self._render(text) == expected

    def test_event_handler_dropped_even_when_allowed(self) -> None:
        assert render_safe_html('<p onclick="x">hi</p>', ["p"], ["onclick"]) == "<p>hi</p>"

    def test_attribute_value_is_encoded(self) -> None:
        assert self._render("<a title=\"a&b\">x</a>") == '<a title="a&amp;b">x</a>'

    @pytest.mark.parametrize("value", [None, 42, b"<b>"])
    def test_non_string_input(self, value: object) -> None:
        assert render_safe_html(value, RICH_TAGS, RICH_ATTRIBUTES) == ""  # type: ignore[arg-type]
