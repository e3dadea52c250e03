"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from gitnotes.models import Collection, Document
from gitnotes.vault.graph import LinkGraph


def make_collection(collection_id: str, notes: dict[str, str]) -> Collection:
    """Collection whose document ids are `<collection>/<name>`."""
    collection = Collection(id=collection_id, name=collection_id)
    for name, content in notes.items():
        collection.documents.append(
            Document(
                id=f"{collection_id}/{name}",
                name=name,
                content=content,
                collection_id=collection_id,
            )
        )
    return collection


@pytest.fixture
def readme_collection() -> Collection:
    """README links Todo; Orphan stands alone."""
    return make_collection(
        "notes",
        {
            "README.md": "[[Todo]]",
            "Todo.md": "no links",
            "Orphan.md": "no links",
        },
    )


@pytest.fixture
def readme_graph(readme_collection: Collection) -> LinkGraph:
    return LinkGraph.from_documents(readme_collection.documents)


@pytest.fixture
def two_collections() -> list[Collection]:
    """A `work` collection that reaches into a `ref` collection and back."""
    work = make_collection(
        "work",
        {
            "Plan.md": "See [[Tasks]] and [[Glossary]].",
            "Tasks.md": "Back to [[Plan]].",
            "Notes.md": "nothing here",
        },
    )
    ref = make_collection(
        "ref",
        {
            "Glossary.md": "Terms. [[Sources]]",
            "Sources.md": "Links out to [[Plan.md]].",
            "Far.md": "[[Sources]]",
        },
    )
    return [work, ref]


def write_workspace(root: Path, collections: dict[str, dict[str, str]], *, config: str = "") -> Path:
    """Create `root` with one folder per collection and a .gitnotes.toml."""
    root.mkdir(parents=True, exist_ok=True)
    (root / ".gitnotes.toml").write_text(config, encoding="utf-8")
    for folder, notes in collections.items():
        (root / folder).mkdir(parents=True, exist_ok=True)
        for name, text in notes.items():
            path = root / folder / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def workspace_path(tmp_path: Path) -> Path:
    """On-disk workspace with two collections."""
    return write_workspace(
        tmp_path / "notes",
        {
            "work": {
                "README.md": "# Work\n\n[[Plan]] and [[Tasks]]\n",
                "Plan.md": "---\nid: plan-1\ntags: [core]\n---\nThe plan. See [[Tasks]].\n",
                "Tasks.md": "Do things for [[Plan]].\n\nRelated: [[Glossary]]\n",
                "Loose.md": "Points at [[Missing]].\n",
            },
            "ref": {
                "Glossary.md": "Definitions used by [[Plan]].\n",
            },
        },
    )
