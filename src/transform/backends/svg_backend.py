# src/transform/backends/svg_backend.py - v2
"""SVG markup minifier: drops comments, metadata and inter-tag whitespace.

Whitespace is only squeezed outside elements whose character data matters:
text content elements, style/script blocks, CDATA sections and any subtree
marked xml:space="preserve" keep their bytes unchanged.
"""

from __future__ import annotations

import re

from imgminify.transform.base_backend import BaseBackend

_COMMENT_RE = re.compile(rb"<!--.*?-->", re.DOTALL)
_PROLOG_RE = re.compile(rb"<\?xml[^>]*\?>")
_DOCTYPE_RE = re.compile(rb"<!DOCTYPE[^>]*>", re.IGNORECASE)
_METADATA_RE = re.compile(rb"<metadata\b.*?</metadata>", re.DOTALL | re.IGNORECASE)
_CDATA_RE = re.compile(rb"<!\[CDATA\[.*?\]\]>", re.DOTALL)
_OPEN_TAG_RE = re.compile(rb"""<([A-Za-z][\w:.-]*)((?:[^>"']|"[^"]*"|'[^']*')*?)(/?)>""")
_PRESERVE_ATTR_RE = re.compile(rb"""xml:space\s*=\s*["']preserve["']""")

_BETWEEN_TAGS_RE = re.compile(rb">\s+<")
_LEADING_RE = re.compile(rb"\A\s+<")
_TRAILING_RE = re.compile(rb">\s+\Z")
_SPACES_RE = re.compile(rb"[ \t\r\n]+")

# Local names whose content is rendered or parsed as text
_PRESERVED_TAGS = frozenset(
    {b"text", b"tspan", b"textPath", b"style", b"script", b"title", b"desc"}
)


def _element_end(data: bytes, name: bytes, start: int) -> int:
    """Offset just past the tag closing the element opened before start."""
    tag_re = re.compile(rb"<(/?)" + re.escape(name) + rb"(?=[\s/>])[^>]*?(/?)>")
    depth = 1
    for match in tag_re.finditer(data, start):
        closing, self_closing = match.groups()
        if closing:
            depth -= 1
        elif not self_closing:
            depth += 1
        if depth == 0:
            return match.end()
    return len(data)


def _preserved_spans(data: bytes) -> list[tuple[int, int]]:
    """Sorted, non-overlapping byte ranges that must not be rewritten."""
    spans = [m.span() for m in _CDATA_RE.finditer(data)]
    pos = 0
    while True:
        match = _OPEN_TAG_RE.search(data, pos)
        if match is None:
            break
        name, attrs, self_closing = match.groups()
        local = name.rsplit(b":", 1)[-1]
        if not self_closing and (
            local in _PRESERVED_TAGS or _PRESERVE_ATTR_RE.search(attrs)
        ):
            end = _element_end(data, name, match.end())
            spans.append((match.start(), end))
            pos = end
        else:
            pos = match.end()

    merged: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start < merged[-1][1]:
            merged[-1] = (merged[-1][0], max(end, merged[-1][1]))
        else:
            merged.append((start, end))
    return merged


def _squeeze(chunk: bytes) -> bytes:
    """Collapse whitespace in markup that carries no character data."""
    if not chunk.strip():
        return b""
    chunk = _BETWEEN_TAGS_RE.sub(b"><", chunk)
    chunk = _LEADING_RE.sub(b"<", chunk)
    chunk = _TRAILING_RE.sub(b">", chunk)
    return _SPACES_RE.sub(b" ", chunk)


def _collapse_whitespace(data: bytes) -> bytes:
    parts: list[bytes] = []
    pos = 0
    for start, end in _preserved_spans(data):
        parts.append(_squeeze(data[pos:start]))
        parts.append(data[start:end])
        pos = end
    parts.append(_squeeze(data[pos:]))
    return b"".join(parts).strip()


class SvgBackend(BaseBackend):
    """Strip non-rendering parts of SVG documents.

    Options:
        keep_prolog: Keep the XML declaration and doctype (default False).
    """

    name = "svg"

    def accepts(self, data: bytes) -> bool:
        head = data[:512].lstrip(b"\xef\xbb\xbf \t\r\n")
        return head.startswith((b"<?xml", b"<svg", b"<!--", b"<!DOCTYPE")) and b"<svg" in data

    def optimize(self, data: bytes) -> bytes:
        result = _COMMENT_RE.sub(b"", data)
        if not self.options.get("keep_prolog", False):
            result = _PROLOG_RE.sub(b"", result)
            result = _DOCTYPE_RE.sub(b"", result)
        result = _METADATA_RE.sub(b"", result)
        result = _collapse_whitespace(result)
        if len(result) >= len(data):
            return data
        return result
