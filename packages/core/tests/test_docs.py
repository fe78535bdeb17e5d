"""Tests for documentation ingestion into the knowledge corpus."""

import pytest
from mrlens_store.memory import MemoryStore
from mrlens_store.models import DOC, GOLD_MR, DocMetadata

from mrlens_core.knowledge.docs import DOC_PROVIDER, find_doc_files, ingest_docs


@pytest.fixture
def repo(tmp_path):
    (tmp_path / "README.md").write_text("# Shop\n")
    (tmp_path / "CHANGELOG.md").write_text("## 1.0\n")
    (tmp_path / "main.py").write_text("print('hi')\n")
    (tmp_path / "docs" / "guides").mkdir(parents=True)
    (tmp_path / "docs" / "index.md").write_text("# Docs\n")
    (tmp_path / "docs" / "guides" / "setup.md").write_text("# Setup\n")
    (tmp_path / "docs" / "diagram.png").write_bytes(b"\x89PNG")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "notes.md").write_text("not docs\n")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "README.md").write_text("vendored\n")
    (tmp_path / ".github").mkdir()
    (tmp_path / ".github" / "README.md").write_text("hidden\n")
    return tmp_path


def _rel(root, paths):
    return [p.relative_to(root).as_posix() for p in paths]


class TestFindDocFiles:
    def test_root_markdown_and_docs_tree(self, repo):
        assert _rel(repo, find_doc_files(repo)) == [
            "CHANGELOG.md",
            "README.md",
            "docs/guides/setup.md",
            "docs/index.md",
        ]

    def test_readme_without_extension(self, tmp_path):
        (tmp_path / "README").write_text("plain\n")
        assert _rel(tmp_path, find_doc_files(tmp_path)) == ["README"]

    def test_skipped_directories_inside_docs(self, tmp_path):
        (tmp_path / "docs" / "build").mkdir(parents=True)
        (tmp_path / "docs" / "build" / "out.md").write_text("generated\n")
        (tmp_path / "docs" / "a.md").write_text("a\n")
        assert _rel(tmp_path, find_doc_files(tmp_path)) == ["docs/a.md"]

    def test_missing_root(self, tmp_path):
        assert find_doc_files(tmp_path / "nope") == []


class TestIngestDocs:
    def test_creates_doc_sources(self, repo):
        store = MemoryStore()
        results, failed = ingest_docs(store, "acme", repo)

        assert failed == []
        assert [r.path for r in results] == ["CHANGELOG.md", "README.md", "docs/guides/setup.md", "docs/index.md"]
        assert all(r.created for r in results)

        sources = store.list_sources("acme", type=DOC)
        assert len(sources) == 4
        assert store.list_sources("acme", type=GOLD_MR) == []

        setup = store.get_by_provider_id("acme", DOC, DOC_PROVIDER, "docs/guides/setup.md")
        assert setup.title == "setup.md"
        assert setup.content_text == "# Setup\n"
        assert setup.source_url is None
        assert isinstance(setup.metadata, DocMetadata)
        assert setup.metadata.file_path == "docs/guides/setup.md"
        assert setup.metadata.file_size == len("# Setup\n")
        assert setup.metadata.modified_at

    def test_rerun_is_idempotent(self, repo):
        store = MemoryStore()
        first, _ = ingest_docs(store, "acme", repo)
        second, _ = ingest_docs(store, "acme", repo)

        assert [r.id for r in second] == [r.id for r in first]
        assert not any(r.created or r.updated for r in second)
        assert len(store.list_sources("acme")) == 4

    def test_edited_file_replaces_previous_version(self, repo):
        store = MemoryStore()
        first, _ = ingest_docs(store, "acme", repo)
        (repo / "README.md").write_text("# Shop\n\nNow with checkout.\n")

        second, _ = ingest_docs(store, "acme", repo)

        readme = next(r for r in second if r.path == "README.md")
        assert readme.updated is True
        assert readme.id == next(r.id for r in first if r.path == "README.md")
        stored = store.get_by_provider_id("acme", DOC, DOC_PROVIDER, "README.md")
        assert "checkout" in stored.content_text
        assert len(store.list_sources("acme")) == 4

    def test_tenants_are_isolated(self, repo):
        store = MemoryStore()
        ingest_docs(store, "acme", repo)
        results, _ = ingest_docs(store, "globex", repo)
        assert all(r.created for r in results)
        assert len(store.list_sources("globex")) == 4

    def test_unreadable_file_is_reported_and_others_continue(self, tmp_path):
        (tmp_path / "README.md").write_bytes(b"\xff\xfe\xfa")
        (tmp_path / "GUIDE.md").write_text("# Guide\n")
        store = MemoryStore()

        results, failed = ingest_docs(store, "acme", tmp_path)

        assert failed == ["README.md"]
        assert [r.path for r in results] == ["GUIDE.md"]

    def test_root_must_be_a_directory(self, tmp_path):
        with pytest.raises(ValueError, match="Not a directory"):
            ingest_docs(MemoryStore(), "acme", tmp_path / "missing")
