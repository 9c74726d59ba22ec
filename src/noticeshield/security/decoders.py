"""Payload decoders: peel one layer of URL and HTML-entity encoding.

The text scanner re-runs its rule sets against each decoded layer so that
``%3Cscript%3E`` or ``&#60;script&#62;`` cannot slip past patterns written
for the literal form.
"""

from __future__ import annotations

import html
from urllib.parse import unquote


def decode_once(text: str) -> str:
    """URL-decode, then resolve named, decimal and hex HTML entities.

    Invalid escapes are left as-is; this never raises for ``str`` input.
    """
    return html.unescape(unquote(text, errors="replace"))


def decode_layers(text: str, max_depth: int) -> list[str]:
    """Return successive decoded forms of *text*, stopping at a fixed point.

    At most *max_depth* layers are produced; the input itself is not included.
    """
    layers: list[str] = []
    current = text
    for _ in range(max_depth):
        decoded = decode_once(current)
        if decoded == current:
            break
        layers.append(decoded)
        current = decoded
    return layers
