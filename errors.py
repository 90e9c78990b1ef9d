"""
Error taxonomy for the HackTricks MCP server.

Every error carries a short, human-readable message; FastMCP surfaces it to
the calling agent as a tool error.
"""
from __future__ import annotations


class HackTricksError(RuntimeError):
    """Base class for every error raised by the server."""


class EmptyInput(HackTricksError, ValueError):
    """A required query, path, section or topic was empty."""


class InvalidPath(HackTricksError, ValueError):
    """A path tried to leave the corpus root (traversal or absolute path)."""


class NotFound(HackTricksError):
    pass


class PageNotFound(NotFound):
    pass


class SectionNotFound(NotFound):
    pass


class CategoryNotFound(NotFound):
    pass


class NoResultsFound(NotFound):
    pass


class IsADirectory(HackTricksError):
    """A page path resolved to a directory."""


class InvalidPattern(HackTricksError, ValueError):
    """ripgrep rejected the search expression."""


class InfrastructureFailure(HackTricksError):
    """The search engine or the filesystem failed in an unclassified way."""
