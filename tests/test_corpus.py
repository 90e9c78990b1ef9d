"""
Tests for path validation, page reads and category browsing
"""
import pytest

import corpus as corpus_mod
from corpus import (
    Corpus,
    DirectoryNode,
    FileNode,
    build_tree,
    get_category_tree,
    list_categories,
    read_page,
    resolve_corpus_path,
)
from errors import (
    CategoryNotFound,
    EmptyInput,
    InvalidPath,
    IsADirectory,
    NotFound,
    PageNotFound,
)


class TestPathSafety:

    @pytest.mark.parametrize("path", [
        "../../../etc/passwd",
        "/etc/passwd",
        "src/../../..",
        "src\\..\\..\\secret.md",
        "C:/Windows/win.ini",
    ])
    def test_traversal_rejected_before_io(self, corpus, mocker, path):
        """Traversal and absolute paths never reach the filesystem"""
        reader = mocker.patch("corpus._read_text")

        with pytest.raises(InvalidPath):
            read_page(corpus, path)

        reader.assert_not_called()

    def test_nul_byte_rejected(self, corpus, mocker):
        reader = mocker.patch("corpus._read_text")

        with pytest.raises(InvalidPath):
            read_page(corpus, "src/a\x00.md")

        reader.assert_not_called()

    @pytest.mark.parametrize("path", ["", "   "])
    def test_empty_path(self, corpus, path):
        with pytest.raises(EmptyInput):
            resolve_corpus_path(corpus, path)

    def test_symlink_escaping_root(self, corpus, tmp_path):
        """A symlink pointing outside the corpus is caught after resolution"""
        outside = tmp_path / "outside.md"
        outside.write_text("# Secret", encoding="utf-8")
        (corpus.content_dir / "link.md").symlink_to(outside)

        with pytest.raises(InvalidPath):
            resolve_corpus_path(corpus, "src/link.md")

    def test_valid_path_resolves_inside_root(self, corpus):
        resolved = resolve_corpus_path(corpus, "src/pentesting-web/xss.md")
        assert resolved == corpus.resolved_root / "src" / "pentesting-web" / "xss.md"

    def test_backslashes_normalized(self, corpus):
        resolved = resolve_corpus_path(corpus, "src\\pentesting-web\\xss.md")
        assert resolved.name == "xss.md"


class TestReadPage:

    def test_reads_content(self, corpus):
        content = read_page(corpus, "src/pentesting-web/xss.md")
        assert content.startswith("# Cross-Site Scripting")

    def test_missing_file(self, corpus):
        with pytest.raises(PageNotFound) as exc_info:
            read_page(corpus, "src/nope.md")
        assert "src/nope.md" in str(exc_info.value)
        assert isinstance(exc_info.value, NotFound)

    def test_directory(self, corpus):
        with pytest.raises(IsADirectory) as exc_info:
            read_page(corpus, "src/pentesting-web")
        assert "src/pentesting-web" in str(exc_info.value)


class TestCorpusConfig:

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HACKTRICKS_PATH", str(tmp_path))
        monkeypatch.setenv("HACKTRICKS_RG_PATH", "/usr/local/bin/rg")
        monkeypatch.setenv("HACKTRICKS_SEARCH_TIMEOUT_SECONDS", "12.5")

        c = Corpus.from_env()

        assert c.resolved_root == tmp_path.resolve()
        assert c.content_dir == tmp_path.resolve() / "src"
        assert c.rg_path == "/usr/local/bin/rg"
        assert c.search_timeout == 12.5

    def test_default_root(self, monkeypatch):
        monkeypatch.delenv("HACKTRICKS_PATH", raising=False)
        assert Corpus.from_env().root == corpus_mod.DEFAULT_ROOT


class TestCategories:

    def test_list_categories_skips_hidden(self, corpus):
        assert list_categories(corpus) == ["linux-hardening", "pentesting-web"]

    def test_top_level_images_is_a_category(self, corpus):
        """Only hidden names are filtered at the top level"""
        (corpus.content_dir / "images").mkdir()
        assert list_categories(corpus) == ["images", "linux-hardening", "pentesting-web"]

    def test_category_tree(self, corpus):
        tree = get_category_tree(corpus, "pentesting-web")

        assert tree == [
            DirectoryNode(
                name="sql-injection",
                path="src/pentesting-web/sql-injection",
                children=[FileNode(name="README.md", path="src/pentesting-web/sql-injection/README.md")],
            ),
            FileNode(name="xss.md", path="src/pentesting-web/xss.md"),
        ]
        assert tree[0].type == "directory"
        assert tree[1].type == "file"

    def test_empty_directories_dropped(self, corpus):
        tree = get_category_tree(corpus, "linux-hardening")
        assert [n.name for n in tree] == ["privilege-escalation.md"]

    def test_unknown_category(self, corpus):
        with pytest.raises(CategoryNotFound):
            get_category_tree(corpus, "does-not-exist")

    def test_category_traversal(self, corpus):
        with pytest.raises(InvalidPath):
            get_category_tree(corpus, "../..")

    def test_depth_bound(self, tmp_path):
        (tmp_path / "a" / "b" / "c").mkdir(parents=True)
        (tmp_path / "a" / "x.md").write_text("# X", encoding="utf-8")
        (tmp_path / "a" / "b" / "c" / "y.md").write_text("# Y", encoding="utf-8")

        tree = build_tree(tmp_path, max_depth=1)

        assert tree == [DirectoryNode(name="a", path="a", children=[FileNode(name="x.md", path="a/x.md")])]

    def test_sorting(self, tmp_path):
        for name in ["beta.md", "Alpha.md", "gamma.md"]:
            (tmp_path / name).write_text("# page", encoding="utf-8")
        (tmp_path / "zeta").mkdir()
        (tmp_path / "zeta" / "z.md").write_text("# z", encoding="utf-8")

        names = [n.name for n in build_tree(tmp_path)]

        assert names == ["zeta", "Alpha.md", "beta.md", "gamma.md"]
