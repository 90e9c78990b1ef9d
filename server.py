from __future__ import annotations
import os, sys, logging

from mcp.server.fastmcp import FastMCP

from corpus import Corpus
from defaults.tools import register_default_tools

# Log to STDERR only (stdio transport cannot receive stdout noise)
logging.basicConfig(
    stream=sys.stderr,
    level=os.getenv("HACKTRICKS_LOG_LEVEL", "INFO").upper(),
    format="[HackTricks MCP] %(levelname)s %(message)s",
)
log = logging.getLogger("hacktricks-mcp")

corpus = Corpus.from_env()

mcp = FastMCP("hacktricks-mcp")
register_default_tools(mcp, corpus)


def check_corpus(corpus: Corpus) -> bool:
    """Warn early when the HackTricks checkout is missing; tools would fail on every call."""
    if not corpus.content_dir.is_dir():
        log.warning(
            "HackTricks content not found at %s. Clone it with: "
            "git clone --depth 1 https://github.com/carlospolop/hacktricks.git %s",
            corpus.content_dir, corpus.resolved_root,
        )
        return False
    return True


def main():
    check_corpus(corpus)
    log.info("HackTricks MCP Server running on stdio (corpus: %s)", corpus.resolved_root)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
