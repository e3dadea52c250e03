import pytest

from gitnotes.config import DEFAULT_PALETTE, GraphConfig
from gitnotes.graph.classify import classify_nodes, select_sovereigns
from gitnotes.graph.scope import filter_scope
from gitnotes.models import Collection, NodeCategory
from gitnotes.vault.graph import LinkGraph

from conftest import make_collection

NEUTRAL = GraphConfig().neutral_color


def _classify(collections: list[Collection], focal: str, scope: str, config: GraphConfig | None = None):
    docs = {d.id: d for c in collections for d in c.documents}
    graph = LinkGraph.from_documents(docs.values())
    view = filter_scope(graph, collections, focal, scope)
    return view, classify_nodes(view, docs, collections, config)


def test_readme_scenario(readme_collection: Collection) -> None:
    _, classes = _classify([readme_collection], "notes", "local")

    readme = classes["notes/README.md"]
    assert readme.category is NodeCategory.SOVEREIGN
    assert readme.color == DEFAULT_PALETTE[0]
    assert readme.important

    todo = classes["notes/Todo.md"]
    assert todo.category is NodeCategory.SUBJECT
    assert todo.color == DEFAULT_PALETTE[0]
    assert todo.sovereign_id == "notes/README.md"
    assert todo.important

    orphan = classes["notes/Orphan.md"]
    assert orphan.category is NodeCategory.NEUTRAL
    assert orphan.color == NEUTRAL
    assert not orphan.important


def test_readme_is_sovereign_case_insensitively() -> None:
    c = make_collection("c", {"A.md": "[[B]] [[C]]", "B.md": "[[A]]", "C.md": "", "readme.md": ""})
    docs = {d.id: d for d in c.documents}
    view = filter_scope(LinkGraph.from_documents(c.documents), [c], "c", "local")
    assert select_sovereigns(view, docs) == ["c/readme.md", "c/A.md", "c/B.md"]


def test_degree_strategy_colors_adjacent_hubs(two_collections: list[Collection]) -> None:
    _, classes = _classify(two_collections, "work", "local")

    assert classes["work/Plan.md"].category is NodeCategory.SOVEREIGN
    assert classes["work/Plan.md"].color == DEFAULT_PALETTE[0]
    assert classes["work/Tasks.md"].category is NodeCategory.SOVEREIGN
    assert classes["work/Tasks.md"].color == DEFAULT_PALETTE[1]
    assert classes["work/Notes.md"].category is NodeCategory.NEUTRAL


def test_exclusive_strategy_is_deprecated(two_collections: list[Collection]) -> None:
    config = GraphConfig(sovereignty="exclusive")
    with pytest.warns(DeprecationWarning, match="exclusive"):
        _, classes = _classify(two_collections, "work", "local", config)

    assert classes["work/Plan.md"].category is NodeCategory.SOVEREIGN
    # Adjacent to Plan, so it may not become a hub itself
    assert classes["work/Tasks.md"].category is NodeCategory.SUBJECT
    assert classes["work/Tasks.md"].color == classes["work/Plan.md"].color


def test_exclusive_warning_points_at_caller() -> None:
    c = make_collection("c", {"A.md": "[[B]] [[C]]", "B.md": "", "C.md": ""})
    docs = {d.id: d for d in c.documents}
    view = filter_scope(LinkGraph.from_documents(c.documents), [c], "c", "local")

    with pytest.warns(DeprecationWarning) as record:
        assert select_sovereigns(view, docs, strategy="exclusive") == ["c/A.md"]

    assert record[0].filename == __file__


def test_unlinked_pair_stays_neutral() -> None:
    c = make_collection("c", {"X.md": "[[Y]]", "Y.md": ""})
    _, classes = _classify([c], "c", "local")
    assert classes["c/X.md"].category is NodeCategory.NEUTRAL
    assert classes["c/Y.md"].category is NodeCategory.NEUTRAL


def test_node_between_two_hubs_is_neutral() -> None:
    c = make_collection(
        "c",
        {
            "Hub1.md": "[[X]] [[Y]] [[Bridge]]",
            "Hub2.md": "[[Z]] [[W]] [[Bridge]]",
            "X.md": "",
            "Y.md": "",
            "Z.md": "",
            "W.md": "",
            "Bridge.md": "",
        },
    )
    with pytest.warns(DeprecationWarning):
        _, classes = _classify([c], "c", "local", GraphConfig(sovereignty="exclusive"))

    assert classes["c/Hub1.md"].category is NodeCategory.SOVEREIGN
    assert classes["c/Hub2.md"].category is NodeCategory.SOVEREIGN
    assert classes["c/Bridge.md"].category is NodeCategory.NEUTRAL
    assert classes["c/Bridge.md"].color == NEUTRAL
    assert classes["c/X.md"].color == classes["c/Hub1.md"].color
    assert classes["c/W.md"].color == classes["c/Hub2.md"].color


def test_palette_cycles_when_hubs_outnumber_colors() -> None:
    palette = ("#111111", "#222222")
    notes = {f"H{i}.md": f"[[L{i}a]] [[L{i}b]]" for i in range(3)}
    notes.update({f"L{i}{s}.md": "" for i in range(3) for s in "ab"})
    c = make_collection("c", notes)
    _, classes = _classify([c], "c", "local", GraphConfig(palette=palette))
    assert [classes[f"c/H{i}.md"].color for i in range(3)] == ["#111111", "#222222", "#111111"]


def test_global_scope_colors_by_collection(two_collections: list[Collection]) -> None:
    _, classes = _classify(two_collections, "work", "global")

    for node_id, cls in classes.items():
        assert cls.category is NodeCategory.COLLECTION
    assert classes["work/Plan.md"].color == DEFAULT_PALETTE[0]
    assert classes["work/Notes.md"].color == DEFAULT_PALETTE[0]
    assert classes["ref/Glossary.md"].color == DEFAULT_PALETTE[1]


def test_global_importance(two_collections: list[Collection]) -> None:
    _, classes = _classify(two_collections, "work", "global")

    assert classes["work/Plan.md"].important  # degree 4
    assert not classes["work/Tasks.md"].important  # degree 2
    assert not classes["work/Notes.md"].important
    assert classes["ref/Sources.md"].important  # external


def test_classification_is_deterministic(two_collections: list[Collection]) -> None:
    _, first = _classify(two_collections, "work", "local")
    _, second = _classify(two_collections, "work", "local")
    assert first == second
