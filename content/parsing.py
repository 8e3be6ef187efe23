"""content.parsing

Robust JSON parsing for LLM outputs.

Accepts the messy formats models actually emit without becoming unsafe.
We do NOT execute code; we only:
- strip code fences
- extract the first JSON object or array block
- normalize smart quotes
- remove trailing commas
- escape bare newlines inside quoted strings
- json.loads, then ast.literal_eval fallback (after normalizing literals)

Oracle payloads come in two shapes: turn/pitch/story replies are objects,
candidate batches are arrays. Callers say which root type they expect.
"""

from __future__ import annotations

import ast
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

JsonRoot = Union[Dict[str, Any], List[Any]]


@dataclass(frozen=True)
class ParseResult:
    data: Optional[JsonRoot]
    raw: str
    cleaned: str
    error: str = ""


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def strip_code_fences(s: str) -> str:
    s = (s or "").strip()
    m = _FENCE_RE.search(s)
    if m:
        return (m.group(1) or "").strip()
    return s


def extract_first_block(s: str, *, root: type = dict) -> str:
    """Extract the outermost {...} or [...] block (best effort)."""
    s = (s or "").strip()
    if not s:
        return s
    opener, closer = ("[", "]") if root is list else ("{", "}")
    i = s.find(opener)
    if i < 0:
        return s
    j = s.rfind(closer)
    if j <= i:
        return s[i:]
    return s[i : j + 1]


def normalize_smart_quotes(s: str) -> str:
    return (
        (s or "")
        .replace("\u201c", '"')
        .replace("\u201d", '"')
        .replace("\u2018", "'")
        .replace("\u2019", "'")
        .replace("\u00a0", " ")
    )


def remove_trailing_commas(s: str) -> str:
    return re.sub(r",\s*([}\]])", r"\1", s)


def escape_newlines_in_json_strings(s: str) -> str:
    """Escape bare newlines inside quoted strings."""
    if not s:
        return s

    out = []
    in_str = False
    quote = ""
    esc = False

    for ch in s:
        if in_str:
            if esc:
                out.append(ch)
                esc = False
                continue
            if ch == "\\":
                out.append(ch)
                esc = True
                continue
            if ch == quote:
                out.append(ch)
                in_str = False
                quote = ""
                continue
            if ch == "\n":
                out.append("\\n")
                continue
            if ch == "\r":
                out.append("\\r")
                continue
            out.append(ch)
        else:
            if ch in ('"', "'"):
                in_str = True
                quote = ch
            out.append(ch)

    return "".join(out)


def _clean(raw: str, root: type) -> str:
    s = strip_code_fences(raw)
    s = extract_first_block(s, root=root)
    s = normalize_smart_quotes(s)
    s = escape_newlines_in_json_strings(s)
    return remove_trailing_commas(s)


def try_parse_json(raw: str, *, root: type = dict) -> ParseResult:
    """Best-effort parse. Returns ParseResult(data=None, error=...) on failure."""
    raw = (raw or "").strip()
    s = _clean(raw, root)
    kind = "array" if root is list else "object"

    # 1) JSON
    try:
        obj = json.loads(s)
        if isinstance(obj, root):
            return ParseResult(data=obj, raw=raw, cleaned=s)
        return ParseResult(data=None, raw=raw, cleaned=s, error=f"JSON root is not an {kind}")
    except ValueError as e_json:
        err1 = f"json.loads: {type(e_json).__name__}: {e_json}"

    # 2) literal_eval fallback (single quotes, True/False/None)
    s2 = re.sub(r"\btrue\b", "True", s, flags=re.IGNORECASE)
    s2 = re.sub(r"\bfalse\b", "False", s2, flags=re.IGNORECASE)
    s2 = re.sub(r"\bnull\b", "None", s2, flags=re.IGNORECASE)
    try:
        obj2 = ast.literal_eval(s2)
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError) as e_ast:
        err2 = f"literal_eval: {type(e_ast).__name__}: {e_ast}"
        return ParseResult(data=None, raw=raw, cleaned=s, error=f"{err1} | {err2}")

    if isinstance(obj2, root):
        # normalize into JSON-serializable types
        return ParseResult(data=json.loads(json.dumps(obj2)), raw=raw, cleaned=s)
    return ParseResult(data=None, raw=raw, cleaned=s, error=f"literal_eval root is not an {kind}; {err1}")


def must_parse_json(raw: str, *, root: type = dict) -> JsonRoot:
    res = try_parse_json(raw, root=root)
    if res.data is None:
        raise ValueError(res.error or "JSON parse failed")
    return res.data
