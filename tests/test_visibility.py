import pytest

from opsmap.catalog import LogicalLayer
from opsmap.errors import UnknownLayerError
from opsmap.visibility import VisibilityState


class TestVisibilityState:
    def test_default_covers_every_layer(self):
        state = VisibilityState.default()

        assert len(state) == len(LogicalLayer)
        assert state.as_dict() == {"departments": True, "communes": False, "sections": True}

    def test_lookup_by_name_or_member(self):
        state = VisibilityState.default()

        assert state["communes"] is False
        assert state[LogicalLayer.SECTIONS] is True

    def test_toggle_twice_restores(self):
        state = VisibilityState.default()

        for layer in LogicalLayer:
            assert state.toggled(layer).toggled(layer) == state
            assert state.toggled(layer)[layer] is not state[layer]

    def test_toggled_returns_new_value(self):
        state = VisibilityState.default()
        toggled = state.toggled("communes")

        assert toggled["communes"] is True
        assert state["communes"] is False

    def test_unknown_layer_rejected(self):
        with pytest.raises(UnknownLayerError):
            VisibilityState({"departments": True, "communes": True, "sections": True, "roads": True})
        with pytest.raises(UnknownLayerError):
            VisibilityState.default().toggled("roads")

    def test_partial_state_rejected(self):
        with pytest.raises(ValueError, match="sections"):
            VisibilityState({"departments": True, "communes": False})

    def test_immutable(self):
        state = VisibilityState.default()
        with pytest.raises(TypeError):
            state["communes"] = True  # type: ignore[index]


def test_toggle_before_ready_only_changes_state(board):
    changes = []
    board.visibility.changed.connect(lambda layer, visible: changes.append((layer, visible)))

    board.visibility.toggle("communes")

    assert board.visibility.is_visible("communes")
    assert changes == [(LogicalLayer.COMMUNES, True)]
    assert board.engine.surfaces == []


def test_initial_scenario_and_toggle(board):
    surface = board.make_ready()

    assert surface.visible_layer_ids() == [
        "departments-fill",
        "departments-outline",
        "sections-fill",
        "sections-outline",
    ]
    assert surface.visibility("communes-outline") == "none"

    board.visibility.toggle(LogicalLayer.COMMUNES)

    assert surface.visibility("communes-outline") == "visible"
    assert surface.visible_layer_ids() == [
        "departments-fill",
        "departments-outline",
        "communes-outline",
        "sections-fill",
        "sections-outline",
    ]
    assert len(board.engine.surfaces) == 1


def test_toggle_pushes_every_owned_layer(board):
    surface = board.make_ready()

    board.visibility.toggle("sections")

    assert surface.visibility("sections-fill") == "none"
    assert surface.visibility("sections-outline") == "none"
    assert surface.visibility("departments-fill") == "visible"


def test_repeated_apply_is_a_no_op(board):
    surface = board.make_ready()
    pushes = len([call for call in surface.calls if call[0] == "set_layout_property"])

    board.visibility.apply()
    board.visibility.apply()

    assert len([call for call in surface.calls if call[0] == "set_layout_property"]) == pushes


def test_missing_surface_layers_are_skipped(board):
    surface = board.make_ready(resolve=False)
    board.loader.resolve(LogicalLayer.DEPARTMENTS)

    board.visibility.toggle("sections")
    board.visibility.toggle("communes")

    assert surface.layer_ids() == ["departments-fill", "departments-outline"]
    assert not board.visibility.is_visible("sections")


def test_apply_replaces_state(board):
    surface = board.make_ready()

    board.visibility.apply({"departments": False, "communes": True, "sections": True})

    assert surface.visibility("departments-fill") == "none"
    assert surface.visibility("communes-outline") == "visible"
    assert board.visibility.state["departments"] is False


def test_state_survives_style_switch(board):
    board.make_ready()
    board.visibility.toggle("communes")

    second = board.make_ready("dark")

    assert second.visibility("communes-outline") == "visible"
    assert len(board.engine.live_surfaces) == 1
