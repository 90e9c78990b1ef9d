from typing import Any, List

from mcp.server.fastmcp import FastMCP

from defaults.schemas import *
from corpus import Corpus, TreeNode, DirectoryNode, read_page, list_categories, get_category_tree
from docs_search import GroupedResult, search_grouped
from errors import EmptyInput, SectionNotFound
from markdown_utils import extract_code_blocks, extract_headers, extract_section, format_code_block
from quick_lookup import QuickLookupResult, quick_lookup


# ------------------------------------------------------------------------------
# Output formatting
# ------------------------------------------------------------------------------

def _format_search_results(query: str, results: List[GroupedResult]) -> str:
    if not results:
        return f'No results found for: "{query}"'

    lines = [f'Found {len(results)} pages for: "{query}"', ""]
    for r in results:
        lines.append(f"📄 {r.title}")
        lines.append(f"   Path: {r.file}")
        lines.append(f"   Matches: {r.match_count}")
        if r.relevant_sections:
            lines.append(f"   Sections: {', '.join(r.relevant_sections)}")
        for m in r.top_matches:
            lines.append(f"   L{m.line}: {m.content}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def _format_outline(path: str, content: str) -> str:
    headers = extract_headers(content)
    if not headers:
        return f"No headers found in {path}"
    lines = [f"Outline of {path}:", ""]
    for h in headers:
        lines.append(f"{'  ' * (h.level - 1)}- {h.text} (line {h.line})")
    return "\n".join(lines)


def _format_tree(nodes: List[TreeNode], indent: int = 0) -> List[str]:
    lines: List[str] = []
    pad = "  " * indent
    for node in nodes:
        if isinstance(node, DirectoryNode):
            lines.append(f"{pad}📁 {node.name}/")
            lines.extend(_format_tree(node.children, indent + 1))
        else:
            lines.append(f"{pad}📄 {node.name} ({node.path})")
    return lines


def _format_quick_lookup(topic: str, result: QuickLookupResult) -> str:
    return "\n".join([
        f'Quick lookup: "{topic}"',
        "",
        f"📄 {result.title}",
        f"   Path: {result.page}",
        "",
        "## Key Sections",
        "",
        result.sections,
        "",
        "## Code Examples",
        "",
        result.code_blocks,
        "",
        f"Use get_hacktricks_page with path '{result.page}' for the full page.",
    ])


def register_default_tools(mcp: FastMCP, corpus: Corpus):
    """Register the HackTricks tools against *corpus*"""

    # Track default tools for introspection by hosts and tests
    if not hasattr(mcp, '_default_tools_registry'):
        mcp._default_tools_registry = []

    # ------------------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------------------

    @mcp.tool()
    def search_hacktricks(args: SearchArgs) -> Any:
        """Search HackTricks for pentesting techniques, exploits and security information. Results are grouped per page with the matching sections."""
        results = search_grouped(corpus, args.query, category=args.category, limit=args.limit)
        return _format_search_results(args.query, results)

    mcp._default_tools_registry.append({
        "name": "search_hacktricks",
        "description": "Search HackTricks for pentesting techniques, exploits and security information. Results are grouped per page with the matching sections.",
        "category": "search"
    })

    @mcp.tool()
    def get_hacktricks_page(args: PageArgs) -> Any:
        """Retrieve the full content of a HackTricks page by file path."""
        return read_page(corpus, args.path)

    mcp._default_tools_registry.append({
        "name": "get_hacktricks_page",
        "description": "Retrieve the full content of a HackTricks page by file path.",
        "category": "pages"
    })

    @mcp.tool()
    def get_hacktricks_outline(args: PageArgs) -> Any:
        """Show the header outline of a page, to pick a section before reading it."""
        return _format_outline(args.path, read_page(corpus, args.path))

    mcp._default_tools_registry.append({
        "name": "get_hacktricks_outline",
        "description": "Show the header outline of a page, to pick a section before reading it.",
        "category": "pages"
    })

    @mcp.tool()
    def get_hacktricks_section(args: SectionArgs) -> Any:
        """Extract one section of a page by header name (case-insensitive substring match)."""
        if not args.section.strip():
            raise EmptyInput("Section name cannot be empty")
        content = read_page(corpus, args.path)
        section = extract_section(content, args.section.strip())
        if section is None:
            available = ", ".join(h.text for h in extract_headers(content)) or "none"
            raise SectionNotFound(
                f'Section "{args.section}" not found in {args.path}. Available sections: {available}'
            )
        return section

    mcp._default_tools_registry.append({
        "name": "get_hacktricks_section",
        "description": "Extract one section of a page by header name (case-insensitive substring match).",
        "category": "pages"
    })

    @mcp.tool()
    def get_hacktricks_cheatsheet(args: PageArgs) -> Any:
        """Return only the code blocks (commands and payloads) of a page."""
        blocks = extract_code_blocks(read_page(corpus, args.path))
        if not blocks:
            return f"No code blocks found in {args.path}"
        header = f"Code blocks from {args.path} ({len(blocks)}):"
        return "\n\n".join([header] + [format_code_block(b) for b in blocks])

    mcp._default_tools_registry.append({
        "name": "get_hacktricks_cheatsheet",
        "description": "Return only the code blocks (commands and payloads) of a page.",
        "category": "pages"
    })

    @mcp.tool()
    def list_hacktricks_categories(args: ListCategoriesArgs) -> Any:
        """List the top-level HackTricks categories, or the page tree of one category."""
        if args.category:
            nodes = get_category_tree(corpus, args.category)
            if not nodes:
                return f"No pages found in category: {args.category}"
            return "\n".join([f"Contents of {args.category}:", ""] + _format_tree(nodes))

        categories = list_categories(corpus)
        listing = "\n".join(f"- {cat}" for cat in categories)
        return f"Available HackTricks Categories ({len(categories)}):\n\n{listing}"

    mcp._default_tools_registry.append({
        "name": "list_hacktricks_categories",
        "description": "List the top-level HackTricks categories, or the page tree of one category.",
        "category": "browse"
    })

    @mcp.tool()
    def hacktricks_quick_lookup(args: QuickLookupArgs) -> Any:
        """Answer 'how do I exploit X' in one call: finds the best page for a topic and returns its exploitation sections and code examples."""
        result = quick_lookup(corpus, args.topic, category=args.category)
        return _format_quick_lookup(args.topic, result)

    mcp._default_tools_registry.append({
        "name": "hacktricks_quick_lookup",
        "description": "Answer 'how do I exploit X' in one call: finds the best page for a topic and returns its exploitation sections and code examples.",
        "category": "search"
    })
