from datetime import datetime, timezone
from pathlib import Path

import pytest

from gitnotes.vault.loader import load_workspace, split_frontmatter
from gitnotes.vault.mutator import LinkMutator
from gitnotes.vault.store import DirectoryStore, DocumentNotFoundError, MemoryStore, atomic_write_text

from conftest import make_collection, write_workspace


def test_load_workspace_collections_and_documents(workspace_path: Path) -> None:
    ws = load_workspace(workspace_path)

    assert [c.id for c in ws.collections] == ["ref", "work"]
    work = ws.collection("work")
    assert [d.name for d in work.documents] == ["Loose.md", "Plan.md", "README.md", "Tasks.md"]
    assert ws.get("work/README.md").collection_id == "work"


def test_frontmatter_id_and_body(workspace_path: Path) -> None:
    ws = load_workspace(workspace_path)

    plan = ws.get("plan-1")
    assert plan is not None
    assert plan.name == "Plan.md"
    assert "See [[Tasks]]" in plan.content
    assert "id:" not in plan.content


def test_hidden_folders_are_skipped(workspace_path: Path) -> None:
    hidden = workspace_path / ".gitnotes"
    hidden.mkdir()
    (hidden / "Secret.md").write_text("[[Plan]]", encoding="utf-8")
    (workspace_path / "work" / ".drafts").mkdir()
    (workspace_path / "work" / ".drafts" / "Draft.md").write_text("x", encoding="utf-8")

    ws = load_workspace(workspace_path)
    assert [c.id for c in ws.collections] == ["ref", "work"]
    assert all("Draft" not in d.name for d in ws.all_documents)


def test_nested_documents_keep_relative_ids(tmp_path: Path) -> None:
    root = write_workspace(tmp_path / "ws", {"c": {"sub/Deep.md": "deep", "Top.md": "[[Deep]]"}})
    ws = load_workspace(root)
    assert ws.get("c/sub/Deep.md").name == "Deep.md"


def test_updated_from_frontmatter(tmp_path: Path) -> None:
    root = write_workspace(tmp_path / "ws", {"c": {"Dated.md": "---\nupdated: 2024-01-02\n---\nbody\n"}})
    doc = load_workspace(root).get("c/Dated.md")
    assert doc.updated_at == datetime(2024, 1, 2, tzinfo=timezone.utc)


def test_unreadable_notes_are_skipped(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    root = write_workspace(
        tmp_path / "ws",
        {"c": {"Good.md": "[[Bad]]", "Bad.md": "---\nid: [unclosed\n---\nbody\n"}},
    )
    (root / "c" / "Binary.md").write_bytes(b"\xff\xfe\x00bad")

    with caplog.at_level("WARNING", logger="gitnotes.vault.loader"):
        ws = load_workspace(root)

    assert [d.name for d in ws.all_documents] == ["Good.md"]
    skipped = [r.getMessage() for r in caplog.records if "skipping" in r.getMessage()]
    assert len(skipped) == 2
    assert any("Bad.md" in m for m in skipped)
    assert any("Binary.md" in m for m in skipped)


def test_split_frontmatter_without_block() -> None:
    assert split_frontmatter("just text") == ({}, "just text")


def test_directory_store_preserves_frontmatter(workspace_path: Path) -> None:
    ws = load_workspace(workspace_path)
    store = DirectoryStore(ws)

    store.set_content("plan-1", "Rewritten body with [[README]]")

    text = (workspace_path / "work" / "Plan.md").read_text(encoding="utf-8")
    assert text.startswith("---")
    assert "id: plan-1" in text
    assert store.get_content("plan-1") == "Rewritten body with [[README]]"
    assert load_workspace(workspace_path).get("plan-1") is not None


def test_directory_store_rename(workspace_path: Path) -> None:
    ws = load_workspace(workspace_path)
    store = DirectoryStore(ws)

    store.set_name("work/Tasks.md", "Todo.md")

    assert not (workspace_path / "work" / "Tasks.md").exists()
    assert (workspace_path / "work" / "Todo.md").exists()
    assert ws.path_of("work/Tasks.md") == workspace_path / "work" / "Todo.md"
    assert "[[Plan]]" in store.get_content("work/Tasks.md")


def test_directory_store_rename_rejects_collisions(workspace_path: Path) -> None:
    store = DirectoryStore(load_workspace(workspace_path))
    with pytest.raises(FileExistsError):
        store.set_name("work/Tasks.md", "README.md")
    with pytest.raises(ValueError):
        store.set_name("work/Tasks.md", "../escape.md")


def test_unknown_document(workspace_path: Path) -> None:
    store = DirectoryStore(load_workspace(workspace_path))
    with pytest.raises(DocumentNotFoundError):
        store.get_content("nope")
    with pytest.raises(KeyError):
        MemoryStore([]).set_content("nope", "x")


def test_rename_cascade_on_disk(workspace_path: Path) -> None:
    ws = load_workspace(workspace_path)
    store = DirectoryStore(ws)
    work = ws.collection("work")
    plan = ws.get("plan-1")

    report = LinkMutator(store).rename_cascade(plan, "Plan.md", "Roadmap.md", work.documents)

    assert sorted(report.updated) == ["work/README.md", "work/Tasks.md"]
    assert (workspace_path / "work" / "Roadmap.md").exists()
    readme = (workspace_path / "work" / "README.md").read_text(encoding="utf-8")
    assert "[[Roadmap]]" in readme
    assert "[[Plan]]" not in readme
    # Other collections are left alone
    glossary = (workspace_path / "ref" / "Glossary.md").read_text(encoding="utf-8")
    assert "[[Plan]]" in glossary


def test_memory_store_name_clash() -> None:
    c = make_collection("c", {"A.md": "", "B.md": ""})
    store = MemoryStore([c])
    with pytest.raises(FileExistsError):
        store.set_name("c/A.md", "B.md")


def test_atomic_write_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "note.md"
    atomic_write_text(target, "one")
    atomic_write_text(target, "two")
    assert target.read_text(encoding="utf-8") == "two"
    assert [p.name for p in tmp_path.iterdir()] == ["note.md"]
