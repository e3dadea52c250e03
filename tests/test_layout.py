import pytest

from gitnotes.graph.layout import NodeBox, layered_layout


def _boxes(*ids: str, width: float = 100, height: float = 60) -> list[NodeBox]:
    return [NodeBox(i, width, height) for i in ids]


def _overlap(a, b) -> bool:
    return a.x < b.x + b.width and b.x < a.x + a.width and a.y < b.y + b.height and b.y < a.y + a.height


def test_empty_layout() -> None:
    assert layered_layout([], []) == {}


def test_single_node_at_origin() -> None:
    (p,) = layered_layout(_boxes("a"), []).values()
    assert (p.x, p.y, p.rank, p.order) == (0, 0, 0, 0)


def test_chain_runs_left_to_right() -> None:
    placements = layered_layout(_boxes("a", "b", "c"), [("a", "b"), ("b", "c")])

    assert [placements[n].rank for n in "abc"] == [0, 1, 2]
    assert placements["a"].x == pytest.approx(0)
    assert placements["b"].x == pytest.approx(200)  # width 100 + rank_sep 100
    assert placements["c"].x == pytest.approx(400)
    assert [placements[n].y for n in "abc"] == pytest.approx([0, 0, 0])


def test_same_rank_boxes_do_not_overlap() -> None:
    placements = layered_layout(
        _boxes("root", "x", "y", "z"),
        [("root", "x"), ("root", "y"), ("root", "z")],
        node_sep=60,
    )
    assert {placements[n].rank for n in "xyz"} == {1}
    column = sorted((placements[n] for n in "xyz"), key=lambda p: p.y)
    assert [p.order for p in column] == [0, 1, 2]
    for upper, lower in zip(column, column[1:]):
        assert lower.y - (upper.y + upper.height) >= 60 - 1e-6


def test_ranks_separated_beyond_widest_box() -> None:
    boxes = [NodeBox("wide", 300, 60), NodeBox("narrow", 100, 60), NodeBox("next", 120, 60)]
    placements = layered_layout(boxes, [("wide", "next"), ("narrow", "next")], rank_sep=100)

    assert placements["wide"].rank == placements["narrow"].rank == 0
    rank0_right = max(placements[n].x + placements[n].width for n in ("wide", "narrow"))
    assert placements["next"].x - rank0_right >= 100 - 1e-6


def test_boxes_of_a_rank_share_a_center_line() -> None:
    boxes = [NodeBox("root", 100, 60), NodeBox("wide", 300, 60), NodeBox("narrow", 100, 60)]
    placements = layered_layout(boxes, [("root", "wide"), ("root", "narrow")])

    wide_cx, _ = placements["wide"].center
    narrow_cx, _ = placements["narrow"].center
    assert wide_cx == pytest.approx(narrow_cx)


def test_cycles_are_laid_out() -> None:
    placements = layered_layout(_boxes("a", "b", "c"), [("a", "b"), ("b", "c"), ("c", "a")])
    assert len(placements) == 3
    assert len({p.rank for p in placements.values()}) == 3


def test_unknown_and_self_edges_ignored() -> None:
    placements = layered_layout(_boxes("a", "b"), [("a", "a"), ("a", "ghost"), ("a", "b")])
    assert set(placements) == {"a", "b"}
    assert placements["b"].rank == 1


def test_components_are_stacked_without_overlap() -> None:
    boxes = _boxes("a", "b", "c", "d", "lonely")
    placements = layered_layout(boxes, [("a", "b"), ("c", "d")], node_sep=60)

    ps = list(placements.values())
    for i, first in enumerate(ps):
        for second in ps[i + 1 :]:
            assert not _overlap(first, second), (first.id, second.id)
    assert placements["a"].y < placements["c"].y < placements["lonely"].y
    assert min(p.x for p in ps) == pytest.approx(0)
    assert min(p.y for p in ps) == pytest.approx(0)


def test_layout_is_deterministic() -> None:
    boxes = _boxes("a", "b", "c", "d", "e")
    edges = [("a", "c"), ("b", "c"), ("c", "d"), ("d", "b"), ("a", "e")]
    assert layered_layout(boxes, edges) == layered_layout(boxes, edges)
