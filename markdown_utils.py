"""
Structural helpers for the HackTricks markdown pages.

Everything here works on raw document text and never touches the disk.
Malformed input never raises: a missing title, header or section simply
yields the sentinel value, None or an empty list.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional


UNTITLED = "Untitled"
DEFAULT_CODE_LANGUAGE = "text"
SNIPPET_LENGTH = 150

_HEADER_RE = re.compile(r"^(#{1,6})\s+(\S.*?)\s*$")
# Non-greedy up to the next fence, so an unterminated fence produces nothing.
_CODE_BLOCK_RE = re.compile(r"```([^\s`]*)[^\n]*\n(.*?)```", re.DOTALL)


@dataclass(frozen=True)
class Header:
    level: int
    text: str
    line: int  # 1-based


@dataclass(frozen=True)
class CodeBlock:
    language: str
    code: str


def extract_title(text: str) -> str:
    """Return the text of the first H1 header, or ``"Untitled"``."""
    for line in text.split("\n"):
        m = _HEADER_RE.match(line)
        if m and len(m.group(1)) == 1:
            return m.group(2)
    return UNTITLED


def extract_headers(text: str) -> List[Header]:
    """Scan *text* once and return its ATX headers in document order."""
    headers: List[Header] = []
    for lineno, line in enumerate(text.split("\n"), start=1):
        m = _HEADER_RE.match(line)
        if m:
            headers.append(Header(level=len(m.group(1)), text=m.group(2), line=lineno))
    return headers


def find_nearest_section(headers: List[Header], target_line: int) -> Optional[str]:
    """
    Return the text of the last header at or before *target_line*.

    *headers* must be in document order, which is what extract_headers gives.
    """
    nearest: Optional[str] = None
    for header in headers:
        if header.line > target_line:
            break
        nearest = header.text
    return nearest


def extract_section(text: str, name: str) -> Optional[str]:
    """
    Return the section whose header contains *name* (case-insensitive).

    The section starts at the first matching header and stops right before
    the next header of the same or a higher level, or at the end of the
    document. Returns None when no header matches.
    """
    needle = name.lower()
    headers = extract_headers(text)
    for index, header in enumerate(headers):
        if needle in header.text.lower():
            return section_at(text, headers, index)
    return None


def section_at(text: str, headers: List[Header], index: int) -> str:
    """
    Return the section opened by ``headers[index]``.

    *headers* must come from extract_headers(text). Selecting by position
    means a header whose text also appears in an earlier header still gets
    its own section.
    """
    start = headers[index]
    lines = text.split("\n")
    stop = len(lines)
    for header in headers[index + 1:]:
        if header.level <= start.level:
            stop = header.line - 1
            break
    return "\n".join(lines[start.line - 1:stop])


def extract_code_blocks(text: str) -> List[CodeBlock]:
    """Return every fenced code block in source order."""
    return [
        CodeBlock(language=m.group(1) or DEFAULT_CODE_LANGUAGE, code=m.group(2).strip())
        for m in _CODE_BLOCK_RE.finditer(text)
    ]


def format_code_block(block: CodeBlock) -> str:
    return f"```{block.language}\n{block.code}\n```"


def truncate(text: str, limit: int = SNIPPET_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
