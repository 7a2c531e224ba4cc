# === FILE: link_scout/parser/markdown_parser.py ===
"""Markdown link extraction for LinkScout.

Collects every URL a reader of the rendered document could follow or load:

* inline links and images — ``[text](url "title")``, ``![alt](url)``;
* reference links — ``[text][label]``, ``[label][]``, ``[label]`` resolved
  against ``[label]: url`` definitions (unused definitions are ignored);
* autolinks — ``<https://example.com>``;
* ``href`` of ``<a>`` and ``src`` of ``<img>`` inside embedded raw HTML,
  parsed with BeautifulSoup.

Fenced code blocks, inline code spans and HTML comments are not link sources.
URLs come back in document order; duplicates are kept, filtering is the
caller's business.
"""
from __future__ import annotations

import html
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Dict, Iterator, List, Tuple, Union

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

__all__: Sequence[str] = ("ExtractionError", "extract_urls", "extract_from_file")


class ExtractionError(Exception):
    """The document cannot be read or its embedded markup cannot be parsed."""


_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})[^\n]*\n.*?(?:^ {0,3}\1[ \t]*$|\Z)", re.M | re.S)
_CODE_SPAN_RE = re.compile(r"(`+)(?!`).+?(?<!`)\1(?!`)", re.S)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.S)
_REF_DEF_RE = re.compile(
    r"^ {0,3}\[(?P<label>[^\]\n]+)\]:[ \t]*\n?[ \t]*(?:<(?P<url1>[^>\n]*)>|(?P<url2>\S+))[^\n]*$",
    re.M,
)

# link text: anything but brackets, with one level of nested brackets allowed
_TEXT = r"(?:[^\[\]\\]|\\.|\[(?:[^\[\]\\]|\\.)*\])*"
_DEST = r"(?:<(?P<url1>[^>\n]*)>|(?P<url2>(?:[^\s()\\]|\\.|\((?:[^\s()\\]|\\.)*\))*))"
_TITLE = r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?"

_TOKEN_RE = re.compile(
    "|".join(
        (
            rf"!?\[(?P<text>{_TEXT})\]\(\s*{_DEST}{_TITLE}\s*\)",
            rf"!?\[(?P<rtext>{_TEXT})\]\[(?P<label>[^\[\]]*)\]",
            rf"!?\[(?P<stext>{_TEXT})\](?![\[(:])",
            r"<(?P<auto>[A-Za-z][A-Za-z0-9+.\-]{1,31}:[^<>\s]*)>",
            r"<(?P<tag>a|img)\b[^>]*>",
        )
    ),
    re.S | re.I,
)

_HTML_ATTR = {"a": "href", "img": "src"}
_ESCAPE_RE = re.compile(r"\\([!-/:-@\[-`{-~])")


def _blank(match: re.Match[str]) -> str:
    """Replace a region with spaces, keeping newlines so offsets and lines survive."""
    return re.sub(r"[^\n]", " ", match.group(0))


def _clean_url(raw: str) -> str:
    return html.unescape(_ESCAPE_RE.sub(r"\1", raw.strip()))


def _normalize_label(label: str) -> str:
    return " ".join(label.split()).lower()


def _html_url(fragment: str, tag: str) -> str | None:
    try:
        soup = BeautifulSoup(fragment, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ExtractionError(f"Unparseable HTML fragment {fragment!r}: {exc}") from exc
    element = soup.find(tag)
    if element is None:
        return None
    value = element.get(_HTML_ATTR[tag])
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip() if isinstance(value, str) else None


def _scan(text: str, offset: int, refs: Dict[str, str]) -> Iterator[Tuple[int, str]]:
    for m in _TOKEN_RE.finditer(text):
        pos = offset + m.start()
        if m.group("tag") is not None:
            tag = m.group("tag").lower()
            url = _html_url(m.group(0), tag)
            if url:
                yield pos, url
            continue
        if m.group("auto") is not None:
            yield pos, m.group("auto")
            continue

        if m.group("text") is not None:
            inner, inner_start = m.group("text"), m.start("text")
            url = m.group("url1") if m.group("url1") is not None else m.group("url2")
            if url:
                yield pos, _clean_url(url)
        elif m.group("rtext") is not None:
            inner, inner_start = m.group("rtext"), m.start("rtext")
            label = m.group("label") or inner
            if (url := refs.get(_normalize_label(label))) is not None:
                yield pos, url
        else:
            inner, inner_start = m.group("stext"), m.start("stext")
            if (url := refs.get(_normalize_label(inner))) is not None:
                yield pos, url

        # nested constructs, e.g. a badge image inside a link
        yield from _scan(inner, offset + inner_start, refs)


def extract_urls(markdown: str) -> List[str]:
    """Return every link/image URL of *markdown* in document order."""
    text = _FENCE_RE.sub(_blank, markdown)
    text = _CODE_SPAN_RE.sub(_blank, text)
    text = _COMMENT_RE.sub(_blank, text)

    refs: Dict[str, str] = {}
    for m in _REF_DEF_RE.finditer(text):
        url = m.group("url1") if m.group("url1") is not None else m.group("url2")
        # the first definition of a label wins
        refs.setdefault(_normalize_label(m.group("label")), _clean_url(url))
    text = _REF_DEF_RE.sub(_blank, text)

    found = sorted(_scan(text, 0, refs), key=lambda item: item[0])
    return [url for _, url in found if url]


def extract_from_file(path: Union[str, Path]) -> List[str]:
    """Read a markdown file and extract its URLs."""
    p = Path(path)
    try:
        markdown = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ExtractionError(f"Can't read {p}: {exc}") from exc
    return extract_urls(markdown)
