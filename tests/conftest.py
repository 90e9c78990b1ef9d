"""
Shared pytest fixtures for hacktricks-mcp tests
"""
import subprocess

import pytest
from mcp.server.fastmcp import FastMCP

from corpus import Corpus


SQLI_PAGE = """# SQL Injection

Intro text about SQL injection and where it shows up.

## Detection

Look for database errors in responses.

## Exploitation

Union based SQL injection payloads work like this and are very useful in practice.

```sql
' UNION SELECT 1,2,3--
```

### Bypass filters

Use inline comments to bypass WAF filters when sending SQL injection payloads.

```bash
sqlmap -u "http://target/?id=1" --tamper=space2comment
```

## References

- https://example.com/sqli
"""

XSS_PAGE = """# Cross-Site Scripting

## Basic payloads

```html
<script>alert(1)</script>
```
"""

PRIVESC_PAGE = """# Linux Privilege Escalation

Overview of local privilege escalation.

## SUID binaries

Find them with find.
"""


@pytest.fixture
def corpus_root(tmp_path):
    """A miniature HackTricks checkout"""
    src = tmp_path / "hacktricks" / "src"
    (src / "pentesting-web" / "sql-injection").mkdir(parents=True)
    (src / "pentesting-web" / "sql-injection" / "README.md").write_text(SQLI_PAGE, encoding="utf-8")
    (src / "pentesting-web" / "xss.md").write_text(XSS_PAGE, encoding="utf-8")
    (src / "pentesting-web" / "notes.txt").write_text("not markdown", encoding="utf-8")
    (src / "pentesting-web" / "images").mkdir()
    (src / "pentesting-web" / "images" / "diagram.md").write_text("# Diagram", encoding="utf-8")
    (src / "linux-hardening").mkdir()
    (src / "linux-hardening" / "privilege-escalation.md").write_text(PRIVESC_PAGE, encoding="utf-8")
    (src / "linux-hardening" / "empty" / "deeper").mkdir(parents=True)
    (src / ".gitbook").mkdir()
    (src / ".gitbook" / "hidden.md").write_text("# Hidden", encoding="utf-8")
    (src / "README.md").write_text("# HackTricks\n", encoding="utf-8")
    return tmp_path / "hacktricks"


@pytest.fixture
def corpus(corpus_root):
    return Corpus(root=corpus_root, rg_path="rg", search_timeout=5.0)


@pytest.fixture
def rg_output(corpus):
    """Build ripgrep-style stdout from (relative path, line, content) tuples"""
    def _build(*matches):
        return "\n".join(
            f"{corpus.resolved_root / path}:{line}:{content}" for path, line, content in matches
        ) + "\n"
    return _build


@pytest.fixture
def mock_rg(mocker):
    """Patch subprocess.run in the search adapter; returns the mock"""
    def _install(stdout="", returncode=0, stderr=""):
        return mocker.patch(
            "docs_search.subprocess.run",
            return_value=subprocess.CompletedProcess(
                args=["rg"], returncode=returncode, stdout=stdout, stderr=stderr
            ),
        )
    return _install


@pytest.fixture
def mcp_server():
    """Create a fresh FastMCP server instance for testing"""
    return FastMCP("test-hacktricks")


@pytest.fixture
def mcp_server_with_tools(mcp_server, corpus):
    """Create a FastMCP server with default tools registered"""
    from defaults.tools import register_default_tools
    register_default_tools(mcp_server, corpus)
    return mcp_server


@pytest.fixture
def sqli_page():
    return SQLI_PAGE
