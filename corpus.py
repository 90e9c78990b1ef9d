from __future__ import annotations
import os, re, logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from dotenv import load_dotenv

from errors import (
    CategoryNotFound,
    EmptyInput,
    InfrastructureFailure,
    InvalidPath,
    IsADirectory,
    PageNotFound,
)

# Load env from a local .env (works whether launched from the project dir or by an MCP host)
load_dotenv()
load_dotenv(dotenv_path=Path(__file__).parent / ".env", override=False)

log = logging.getLogger("hacktricks-mcp")

# ------------------------------------------------------------------------------
# Environment / Config
# ------------------------------------------------------------------------------

# Root of the HackTricks checkout (git clone https://github.com/carlospolop/hacktricks.git)
DEFAULT_ROOT = Path(__file__).parent / "hacktricks"

# Pages live under <root>/src, one subdirectory per category
CONTENT_DIR = "src"

HIDDEN_PREFIX = "."
ASSETS_DIR = "images"
MARKDOWN_SUFFIX = ".md"
MAX_TREE_DEPTH = 3


@dataclass(frozen=True)
class Corpus:
    """Where the documentation lives and how to search it."""

    root: Path
    rg_path: str = "rg"
    search_timeout: float = 30.0

    # resolved once, every path check compares against it
    resolved_root: Path = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "resolved_root", Path(self.root).expanduser().resolve())

    @property
    def content_dir(self) -> Path:
        return self.resolved_root / CONTENT_DIR

    @classmethod
    def from_env(cls) -> "Corpus":
        return cls(
            root=Path(os.getenv("HACKTRICKS_PATH", str(DEFAULT_ROOT))),
            rg_path=os.getenv("HACKTRICKS_RG_PATH", "rg"),
            search_timeout=float(os.getenv("HACKTRICKS_SEARCH_TIMEOUT_SECONDS", "30")),
        )


# ------------------------------------------------------------------------------
# Path safety
# ------------------------------------------------------------------------------

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def _check_relative(rel_path: str, what: str = "path") -> str:
    """Reject empty, absolute and traversing paths before touching the disk."""
    if not rel_path or not rel_path.strip():
        raise EmptyInput(f"{what.capitalize()} cannot be empty")

    if "\x00" in rel_path:
        raise InvalidPath(f"Invalid {what}: NUL bytes are not allowed: {rel_path!r}")

    normalized = rel_path.strip().replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_RE.match(normalized):
        raise InvalidPath(f"Invalid {what}: absolute paths are not allowed: {rel_path}")
    if ".." in normalized.split("/"):
        raise InvalidPath(f"Invalid {what}: directory traversal not allowed: {rel_path}")
    return normalized


def _ensure_inside(base: Path, candidate: Path, rel_path: str, what: str = "path") -> Path:
    resolved = candidate.resolve()
    if resolved != base and base not in resolved.parents:
        raise InvalidPath(f"Invalid {what}: must be within the HackTricks directory: {rel_path}")
    return resolved


def resolve_corpus_path(corpus: Corpus, rel_path: str) -> Path:
    """Map a caller supplied relative path onto the corpus, or raise InvalidPath."""
    normalized = _check_relative(rel_path)
    return _ensure_inside(corpus.resolved_root, corpus.resolved_root / normalized, rel_path)


def resolve_category_dir(corpus: Corpus, category: str) -> Path:
    """Same gate as resolve_corpus_path, but relative to the content directory."""
    normalized = _check_relative(category, what="category")
    return _ensure_inside(
        corpus.resolved_root, corpus.content_dir / normalized.strip("/"), category, what="category"
    )


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def read_page(corpus: Corpus, rel_path: str) -> str:
    """Return the full text of a page; the path is validated before any read."""
    path = resolve_corpus_path(corpus, rel_path)
    if path.is_dir():
        log.warning("Path is a directory: %s", rel_path)
        raise IsADirectory(f"Path is a directory, not a file: {rel_path}")

    log.info("Reading file: %s", rel_path)
    try:
        content = _read_text(path)
    except FileNotFoundError as e:
        log.warning("File not found: %s", rel_path)
        raise PageNotFound(f"File not found: {rel_path}") from e
    except IsADirectoryError as e:
        raise IsADirectory(f"Path is a directory, not a file: {rel_path}") from e
    except (OSError, UnicodeDecodeError) as e:
        log.error("Error reading file %s: %s", rel_path, e)
        raise InfrastructureFailure(f"Error reading file {rel_path}: {e}") from e

    log.info("File size: %d bytes", len(content))
    return content


# ------------------------------------------------------------------------------
# Category tree
# ------------------------------------------------------------------------------

@dataclass(frozen=True)
class FileNode:
    name: str
    path: str

    @property
    def type(self) -> str:
        return "file"


@dataclass(frozen=True)
class DirectoryNode:
    name: str
    path: str
    children: List["TreeNode"]

    @property
    def type(self) -> str:
        return "directory"


TreeNode = Union[FileNode, DirectoryNode]


def _is_skipped(name: str) -> bool:
    return name.startswith(HIDDEN_PREFIX) or name == ASSETS_DIR


def _sort_key(entry: os.DirEntry):
    # directories first, then case-insensitive by name
    return (0 if entry.is_dir() else 1, entry.name.casefold(), entry.name)


def build_tree(
    directory: Path,
    depth: int = 0,
    max_depth: int = MAX_TREE_DEPTH,
    *,
    base: Path | None = None,
) -> List[TreeNode]:
    """
    Walk *directory* and return its markdown files and subdirectories.

    Hidden entries and the assets directory are skipped, directories that end
    up with nothing to show are dropped, and recursion stops once *depth*
    exceeds *max_depth*. Node paths are relative to *base* (defaults to
    *directory*).
    """
    if depth > max_depth:
        return []
    base = base or directory

    try:
        with os.scandir(directory) as it:
            entries = sorted((e for e in it if not _is_skipped(e.name)), key=_sort_key)
    except OSError as e:
        log.warning("Cannot list %s: %s", directory, e)
        return []

    nodes: List[TreeNode] = []
    for entry in entries:
        entry_path = Path(entry.path)
        rel = entry_path.relative_to(base).as_posix()
        if entry.is_dir():
            children = build_tree(entry_path, depth + 1, max_depth, base=base)
            if children:
                nodes.append(DirectoryNode(name=entry.name, path=rel, children=children))
        elif entry.name.endswith(MARKDOWN_SUFFIX):
            nodes.append(FileNode(name=entry.name, path=rel))
    return nodes


def list_categories(corpus: Corpus) -> List[str]:
    """Top level categories: every visible subdirectory of the content dir."""
    log.info("Listing categories in %s", corpus.content_dir)
    try:
        with os.scandir(corpus.content_dir) as it:
            categories = sorted(
                e.name for e in it if e.is_dir() and not e.name.startswith(HIDDEN_PREFIX)
            )
    except OSError as e:
        log.error("Error listing categories: %s", e)
        raise InfrastructureFailure(f"Failed to list categories: {e}") from e

    log.info("Found %d categories", len(categories))
    return categories


def get_category_tree(corpus: Corpus, category: str, max_depth: int = MAX_TREE_DEPTH) -> List[TreeNode]:
    """Full subtree of one category; node paths are relative to the corpus root."""
    directory = resolve_category_dir(corpus, category)
    if not directory.is_dir():
        raise CategoryNotFound(f"Category not found: {category}")

    log.info("Building tree for category: %s", category)
    return build_tree(directory, max_depth=max_depth, base=corpus.resolved_root)
