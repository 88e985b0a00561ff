"""Heuristics for text that is really inlined/minified code.

Script tags are already dropped at parse time, but sites also render JSON
blobs and bundled code into visible nodes. Such text is full of numbers that
look like prices, so every amount pass skips it.
"""

from __future__ import annotations

import re

MAX_ELEMENT_TEXT = 1000

_PUNCT_RUN_RE = re.compile(r"[{}();,=&|!]+.*[{}();,=&|!]+", re.DOTALL)
_CODE_TOKENS = ("function", "var ", "return ", "typeof", "Object.", "prototype", "=>")


def looks_like_code(text: str) -> bool:
    if len(text) > MAX_ELEMENT_TEXT:
        return True
    compact = "".join(text.split())
    if len(compact) > 100 and _PUNCT_RUN_RE.search(text):
        return True
    return any(token in text for token in _CODE_TOKENS)
