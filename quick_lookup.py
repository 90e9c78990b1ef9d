"""
One-shot "how do I exploit X" lookups.

The topic is expanded through a small alias table, every term is searched,
and the candidate pages are scored with a fixed heuristic. The winning page
is then mined for exploitation-flavoured sections and code examples.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, List, Optional

from corpus import Corpus, read_page
from docs_search import GroupedResult, search_grouped
from errors import EmptyInput, HackTricksError, NoResultsFound
from markdown_utils import (
    extract_code_blocks,
    extract_headers,
    format_code_block,
    section_at,
)

log = logging.getLogger("hacktricks-mcp")


TOPIC_ALIASES: Dict[str, List[str]] = {
    "sqli": ["SQL injection", "SQLi"],
    "xss": ["cross-site scripting", "XSS"],
    "ssrf": ["server-side request forgery", "SSRF"],
    "csrf": ["cross-site request forgery", "CSRF"],
    "lfi": ["local file inclusion", "file inclusion"],
    "rfi": ["remote file inclusion", "file inclusion"],
    "rce": ["remote code execution", "command injection"],
    "xxe": ["XML external entity", "XXE"],
    "ssti": ["server-side template injection", "SSTI"],
    "idor": ["insecure direct object reference", "IDOR"],
    "jwt": ["JSON web token", "JWT"],
    "privesc": ["privilege escalation"],
    "deser": ["deserialization"],
    "cors": ["CORS misconfiguration", "CORS"],
    "crlf": ["CRLF injection", "CRLF"],
}

PRIORITY_TERMS = (
    "exploitation",
    "exploit",
    "example",
    "poc",
    "proof of concept",
    "payload",
    "bypass",
    "attack",
    "abuse",
    "technique",
)

# Folder landing pages in the HackTricks layout
CANONICAL_PAGE_NAMES = ("readme.md", "index.md")

CANDIDATE_LIMIT = 10
MIN_SECTION_LENGTH = 50
MAX_CODE_BLOCKS = 5

# Relative weights: title > landing page > path segment > section vocabulary
TITLE_MATCH_BONUS = 100
CANONICAL_PAGE_BONUS = 200
PATH_SEGMENT_BONUS = 50
PRIORITY_SECTION_BONUS = 10

SECTION_SEPARATOR = "\n\n---\n\n"
NO_SECTIONS = "No exploitation-specific sections found."
NO_CODE_BLOCKS = "No code blocks found."


@dataclass(frozen=True)
class QuickLookupResult:
    page: str
    title: str
    sections: str
    code_blocks: str
    score: int


def expand_topic(topic: str) -> List[str]:
    """The raw topic first, followed by its alias expansions (if any)."""
    terms = [topic]
    terms.extend(TOPIC_ALIASES.get(topic.strip().lower(), []))
    return terms


def _path_topic(file: str) -> str:
    """What a page is about according to its path (folder name for README pages)."""
    p = PurePosixPath(file)
    name = p.parent.name if p.name.lower() in CANONICAL_PAGE_NAMES else p.stem
    return _unhyphen(name)


def _unhyphen(text: str) -> str:
    return text.strip().lower().replace("-", " ")


def _has_priority_term(text: str) -> bool:
    lowered = text.lower()
    return any(term in lowered for term in PRIORITY_TERMS)


def score_candidate(result: GroupedResult, term: str, topic: str) -> int:
    topic_l = topic.strip().lower()
    slug = topic_l.replace(" ", "-")
    path_l = result.file.lower()
    # hyphens and spaces compare equal: "cross-site scripting" vs "xss-cross-site-scripting"
    term_n = _unhyphen(term)
    topic_n = _unhyphen(topic)
    title_n = _unhyphen(result.title)
    path_topic = _path_topic(result.file)

    score = result.match_count

    if any(needle and (needle in title_n or needle in path_topic) for needle in (term_n, topic_n)):
        score += TITLE_MATCH_BONUS

    if PurePosixPath(path_l).name in CANONICAL_PAGE_NAMES and slug in path_l:
        score += CANONICAL_PAGE_BONUS

    if f"/{slug}/" in path_l or f"/{slug}-" in path_l or f"-{slug}" in path_l:
        score += PATH_SEGMENT_BONUS

    if any(_has_priority_term(s) for s in result.relevant_sections):
        score += PRIORITY_SECTION_BONUS

    return score


def find_best_page(corpus: Corpus, topic: str, category: Optional[str] = None) -> tuple[GroupedResult, int]:
    """Search every expanded term and keep the single highest scoring page."""
    best: Optional[GroupedResult] = None
    best_score = 0

    for term in expand_topic(topic):
        try:
            candidates = search_grouped(corpus, term, category=category, limit=CANDIDATE_LIMIT)
        except HackTricksError as e:
            log.warning('Quick lookup: search for "%s" failed, skipping: %s', term, e)
            continue

        for candidate in candidates:
            score = score_candidate(candidate, term, topic)
            # strictly greater, so the first page seen wins a tie
            if score > best_score:
                best, best_score = candidate, score

    if best is None:
        raise NoResultsFound(f'No results found for topic: "{topic}"')
    return best, best_score


def _exploitation_sections(content: str) -> List[str]:
    headers = extract_headers(content)
    sections: List[str] = []
    for index, header in enumerate(headers):
        if not _has_priority_term(header.text):
            continue
        section = section_at(content, headers, index)
        if len(section) >= MIN_SECTION_LENGTH:
            sections.append(section)

    # nothing exploitation-specific: take the section right after the title
    if not sections and len(headers) >= 2:
        sections.append(section_at(content, headers, 1))
    return sections


def quick_lookup(corpus: Corpus, topic: str, category: Optional[str] = None) -> QuickLookupResult:
    if not topic or not topic.strip():
        raise EmptyInput("Topic cannot be empty")

    log.info('Quick lookup for: "%s" (category: %s)', topic, category or "all")
    best, score = find_best_page(corpus, topic, category)
    log.info("Quick lookup picked %s (score %d)", best.file, score)

    content = read_page(corpus, best.file)
    sections = _exploitation_sections(content)
    blocks = extract_code_blocks(content)[:MAX_CODE_BLOCKS]

    return QuickLookupResult(
        page=best.file,
        title=best.title,
        sections=SECTION_SEPARATOR.join(sections) if sections else NO_SECTIONS,
        code_blocks="\n\n".join(format_code_block(b) for b in blocks) if blocks else NO_CODE_BLOCKS,
        score=score,
    )
