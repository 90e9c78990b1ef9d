"""
Full-text search over the HackTricks corpus.

ripgrep does the line matching; this module turns its output into
SearchRecords and then groups them per page, attaching each page's title and
the sections the matches fall into.
"""
from __future__ import annotations

import re
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from corpus import Corpus, read_page, resolve_category_dir
from errors import EmptyInput, HackTricksError, InfrastructureFailure, InvalidPattern
from markdown_utils import extract_headers, extract_title, find_nearest_section, truncate

log = logging.getLogger("hacktricks-mcp")

# ripgrep exit codes
RG_NO_MATCHES = 1
RG_ERROR = 2

MAX_SECTIONS_PER_RESULT = 5
MAX_TOP_MATCHES = 3
RAW_RESULTS_FACTOR = 3

# path:line:content
_RG_LINE_RE = re.compile(r"^(.+?):(\d+):(.*)$")


@dataclass(frozen=True)
class SearchRecord:
    file: str
    line: int
    content: str


@dataclass(frozen=True)
class MatchSnippet:
    line: int
    content: str


@dataclass
class GroupedResult:
    file: str
    title: str
    match_count: int
    relevant_sections: List[str] = field(default_factory=list)
    top_matches: List[MatchSnippet] = field(default_factory=list)


# ---------------------------------------------------------------------------
# ripgrep adapter
# ---------------------------------------------------------------------------

def _relative_to_root(corpus: Corpus, file: str) -> str:
    path = Path(file)
    try:
        return path.resolve().relative_to(corpus.resolved_root).as_posix()
    except ValueError:
        return path.as_posix()


def parse_rg_output(corpus: Corpus, stdout: str) -> List[SearchRecord]:
    """Parse ``path:line:content`` records, dropping anything that does not fit."""
    records: List[SearchRecord] = []
    for raw in stdout.splitlines():
        m = _RG_LINE_RE.match(raw)
        if not m:
            continue
        file, lineno, content = m.groups()
        records.append(SearchRecord(
            file=_relative_to_root(corpus, file),
            line=int(lineno),
            content=content.strip(),
        ))
    return records


def run_search(
    corpus: Corpus,
    query: str,
    scope: Optional[Path] = None,
    max_results: Optional[int] = None,
) -> List[SearchRecord]:
    """
    Run ripgrep for *query* over *scope* (the corpus root by default).

    The query is handed to ripgrep as a single argument, never through a
    shell, so metacharacters are only ever part of the pattern.

    Returns an empty list when nothing matches. Raises InvalidPattern when
    ripgrep rejects the expression and InfrastructureFailure for anything
    else that goes wrong.
    """
    if not query or not query.strip():
        raise EmptyInput("Search query cannot be empty")

    target = scope or corpus.resolved_root
    cmd = [
        corpus.rg_path,
        "-n", "-i",
        "--no-heading", "--with-filename",
        "--color", "never",
        "--type", "md",
        "-e", query,
        str(target),
    ]

    log.info('Searching for: "%s" in %s', query, target)
    try:
        proc = subprocess.run(
            cmd, capture_output=True, text=True, check=False, timeout=corpus.search_timeout
        )
    except FileNotFoundError as e:
        raise InfrastructureFailure(f"Search failed: ripgrep not found ({corpus.rg_path})") from e
    except subprocess.TimeoutExpired as e:
        raise InfrastructureFailure(
            f"Search failed: ripgrep timed out after {corpus.search_timeout}s"
        ) from e

    if proc.returncode == RG_NO_MATCHES:
        log.info('No results found for: "%s"', query)
        return []
    if proc.returncode == RG_ERROR:
        diagnostic = (proc.stderr or "").strip()
        log.warning("Invalid search pattern: %s", diagnostic)
        raise InvalidPattern(f"Invalid search pattern: {diagnostic or query}")
    if proc.returncode != 0:
        log.error("Search failed with exit code %s: %s", proc.returncode, proc.stderr)
        raise InfrastructureFailure(f"Search failed with exit code {proc.returncode}")

    records = parse_rg_output(corpus, proc.stdout)
    limited = records[:max_results] if max_results is not None else records
    log.info("Found %d results (keeping %d)", len(records), len(limited))
    return limited


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def group_records(corpus: Corpus, records: List[SearchRecord]) -> List[GroupedResult]:
    """Group raw matches per file, in the order files were first seen."""
    by_file: Dict[str, List[SearchRecord]] = {}
    for rec in records:
        by_file.setdefault(rec.file, []).append(rec)

    groups: List[GroupedResult] = []
    for file, matches in by_file.items():
        sections: List[str] = []
        try:
            content = read_page(corpus, file)
        except HackTricksError as e:
            # keep the match evidence even when the page can't be read
            log.warning("Could not read %s for grouping: %s", file, e)
            title = Path(file).stem
        else:
            title = extract_title(content)
            headers = extract_headers(content)
            for rec in matches:
                name = find_nearest_section(headers, rec.line)
                if name is None or name in sections:
                    continue
                sections.append(name)
                if len(sections) >= MAX_SECTIONS_PER_RESULT:
                    break

        groups.append(GroupedResult(
            file=file,
            title=title,
            match_count=len(matches),
            relevant_sections=sections,
            top_matches=[
                MatchSnippet(line=rec.line, content=truncate(rec.content))
                for rec in matches[:MAX_TOP_MATCHES]
            ],
        ))

    # sorted() is stable, so ties keep discovery order
    return sorted(groups, key=lambda g: g.match_count, reverse=True)


def search_grouped(
    corpus: Corpus,
    query: str,
    category: Optional[str] = None,
    limit: int = 20,
) -> List[GroupedResult]:
    """
    Search and return at most *limit* pages ranked by number of matches.

    ripgrep is asked for three times *limit* raw matches so pages with many
    hits don't crowd everything else out before grouping.
    """
    if not query or not query.strip():
        raise EmptyInput("Search query cannot be empty")

    scope: Optional[Path] = None
    if category:
        scope = resolve_category_dir(corpus, category)
        if not scope.is_dir():
            log.warning("Category directory does not exist: %s", category)
            return []

    records = run_search(corpus, query, scope=scope, max_results=limit * RAW_RESULTS_FACTOR)
    return group_records(corpus, records)[:limit]
