import math

import pytest

from skillgraph import LayoutError, Node, Tag, UNASSIGNED, make_layout_input, validate_layout_input


def _layout(nodes=(), tags=(), width=400, height=400, **kwargs):
    return make_layout_input(list(nodes), list(tags), width, height, **kwargs)


def test_valid_layout_passes():
    validate_layout_input(_layout([Node("a", tags=("A",))], [Tag("A")]))


@pytest.mark.parametrize("width,height", [(0, 100), (100, -1), (math.nan, 100), (math.inf, 50)])
def test_rejects_bad_viewport(width, height):
    with pytest.raises(LayoutError):
        validate_layout_input(_layout(width=width, height=height))


def test_rejects_duplicate_node_ids():
    with pytest.raises(LayoutError) as excinfo:
        validate_layout_input(_layout([Node("a"), Node("a")]))
    assert 'duplicate node id "a"' in str(excinfo.value)


def test_rejects_duplicate_and_reserved_tags():
    with pytest.raises(LayoutError):
        validate_layout_input(_layout(tags=[Tag("A"), Tag("A")]))
    with pytest.raises(LayoutError):
        validate_layout_input(_layout(tags=[Tag(UNASSIGNED)]))


def test_rejects_unknown_difficulty():
    with pytest.raises(LayoutError) as excinfo:
        validate_layout_input(_layout([Node("a", difficulty="Legendary")]))
    assert "Legendary" in str(excinfo.value)


def test_extended_difficulty_levels_are_accepted():
    levels = ("Trivial", "Easy", "Medium", "Hard", "Expert")
    validate_layout_input(_layout([Node("a", difficulty="Expert")], difficulty_levels=levels))


def test_rejects_zoom_into_unknown_tag():
    with pytest.raises(LayoutError):
        validate_layout_input(_layout(tags=[Tag("A")], zoomed="B"))
    validate_layout_input(_layout(tags=[Tag("A")], zoomed=UNASSIGNED))


def test_layout_error_is_value_error():
    assert issubclass(LayoutError, ValueError)
