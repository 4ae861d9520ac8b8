"""Pure node edits: placement, transforms, locking and layer order."""

import pytest

from showplot.editor import nodes as N


def _stage():
    return [
        N.make_node("1", 100, 50, node_id="a"),
        N.make_node("2", 200, 80, node_id="b"),
        N.make_node("3", 300, 120, node_id="c"),
    ]


class TestPlacement:
    def test_make_node_defaults(self):
        node = N.make_node("7", 10, 20, profile={"mic": "SM57"}, node_id="n1")
        assert node == {
            "id": "n1",
            "type": "asset",
            "asset_id": "7",
            "x": 10,
            "y": 20,
            "rotation": 0,
            "scale": 1,
            "label": "",
            "flip_x": False,
            "locked": False,
            "profile": {"mic": "SM57"},
        }

    def test_new_ids_are_unique(self):
        assert N.new_id() != N.new_id()

    def test_add_and_delete(self):
        nodes = N.add_node([], N.make_node("1", 0, 0, node_id="a"))
        assert [n["id"] for n in nodes] == ["a"]
        assert N.delete_node(nodes, "a") == []

    def test_delete_missing_returns_same_list(self):
        nodes = _stage()
        assert N.delete_node(nodes, "zzz") is nodes

    def test_add_rejects_existing_id(self):
        with pytest.raises(N.EditError):
            N.add_node(_stage(), N.make_node("9", 0, 0, node_id="b"))

    def test_duplicate_rejects_existing_id(self):
        with pytest.raises(N.EditError):
            N.duplicate_node(_stage(), "a", "c")

    def test_duplicate_offsets_copy(self):
        nodes = N.duplicate_node(_stage(), "a", "a2")
        copy = nodes[-1]
        assert copy["id"] == "a2"
        assert (copy["x"], copy["y"]) == (124, 74)
        assert copy["asset_id"] == "1"


class TestTransforms:
    def test_move(self):
        nodes = N.move_node(_stage(), "b", 5, 6)
        assert (nodes[1]["x"], nodes[1]["y"]) == (5, 6)

    def test_move_to_same_place_is_noop(self):
        nodes = _stage()
        assert N.move_node(nodes, "a", 100, 50) is nodes

    def test_edits_do_not_mutate_input(self):
        nodes = _stage()
        N.move_node(nodes, "a", 1, 1)
        assert nodes[0]["x"] == 100

    def test_rotate_accumulates(self):
        nodes = N.rotate_node(_stage(), "a", 15)
        nodes = N.rotate_node(nodes, "a", 15)
        assert nodes[0]["rotation"] == 30

    def test_scale_clamped(self):
        nodes = _stage()
        for _ in range(30):
            nodes = N.scale_node(nodes, "a", N.SCALE_STEP)
        assert nodes[0]["scale"] == N.MAX_SCALE
        for _ in range(60):
            nodes = N.scale_node(nodes, "a", 1 / N.SCALE_STEP)
        assert nodes[0]["scale"] == N.MIN_SCALE

    def test_transform_uses_absolute_scale(self):
        nodes = N.transform_node(_stage(), "a", scale=-2, rotation=45, flip_x=True)
        assert nodes[0]["scale"] == 2
        assert nodes[0]["rotation"] == 45
        assert nodes[0]["flip_x"] is True

    def test_transform_without_fields_is_noop(self):
        nodes = _stage()
        assert N.transform_node(nodes, "a") is nodes

    def test_flip_toggles(self):
        nodes = N.flip_node(_stage(), "a")
        assert nodes[0]["flip_x"] is True
        assert N.flip_node(nodes, "a")[0]["flip_x"] is False

    def test_label_and_profile(self):
        nodes = N.set_label(_stage(), "a", "Vox 1")
        nodes = N.set_profile(nodes, "a", {"mic": "SM58"})
        nodes = N.set_profile(nodes, "a", {"stand": "Tall Boom"})
        assert nodes[0]["label"] == "Vox 1"
        assert nodes[0]["profile"] == {"mic": "SM58", "stand": "Tall Boom"}

    def test_update_patch(self):
        nodes = N.update_node(_stage(), "b", {"x": 1, "label": "Bass", "scale": 9})
        assert nodes[1]["x"] == 1
        assert nodes[1]["label"] == "Bass"
        assert nodes[1]["scale"] == N.MAX_SCALE

    def test_update_coerces_numbers(self):
        nodes = N.update_node(_stage(), "b", {"x": "12.5", "rotation": 90, "label": 7})
        assert nodes[1]["x"] == 12.5
        assert isinstance(nodes[1]["rotation"], float)
        assert nodes[1]["label"] == "7"

    @pytest.mark.parametrize(
        "patch",
        [{"x": "left"}, {"y": None}, {"rotation": float("nan")}, {"scale": "big"}, {"x": True}, {"flip_x": "yes"}],
    )
    def test_update_rejects_bad_values(self, patch):
        nodes = _stage()
        with pytest.raises(N.EditError):
            N.update_node(nodes, "b", patch)
        assert nodes[1]["x"] == 200

    def test_transform_rejects_bad_values(self):
        with pytest.raises(N.EditError):
            N.transform_node(_stage(), "a", rotation="abc")
        with pytest.raises(N.EditError):
            N.transform_node(_stage(), "a", scale=float("inf"))
        with pytest.raises(N.EditError):
            N.transform_node(_stage(), "a", flip_x="no")

    def test_update_rejects_identity_fields(self):
        with pytest.raises(N.EditError):
            N.update_node(_stage(), "b", {"asset_id": "9"})
        with pytest.raises(N.EditError):
            N.update_node(_stage(), "b", {"locked": False})

    def test_unknown_node(self):
        with pytest.raises(N.NodeNotFound):
            N.move_node(_stage(), "nope", 0, 0)


class TestLocking:
    def test_locked_node_rejects_edits(self):
        nodes = N.toggle_lock(_stage(), "a")
        assert nodes[0]["locked"] is True
        with pytest.raises(N.NodeLocked):
            N.move_node(nodes, "a", 0, 0)
        with pytest.raises(N.NodeLocked):
            N.duplicate_node(nodes, "a")
        with pytest.raises(N.NodeLocked):
            N.move_layer(nodes, "a", 1)

    def test_unlock(self):
        nodes = N.toggle_lock(N.toggle_lock(_stage(), "a"), "a")
        assert nodes[0]["locked"] is False
        assert N.move_node(nodes, "a", 1, 2)[0]["x"] == 1

    def test_locked_node_can_still_be_deleted(self):
        nodes = N.toggle_lock(_stage(), "a")
        assert [n["id"] for n in N.delete_node(nodes, "a")] == ["b", "c"]


class TestLayers:
    def test_bring_forward_and_back(self):
        nodes = N.move_layer(_stage(), "a", 1)
        assert [n["id"] for n in nodes] == ["b", "a", "c"]
        nodes = N.move_layer(nodes, "c", -2)
        assert [n["id"] for n in nodes] == ["c", "b", "a"]

    def test_clamped_at_ends(self):
        nodes = _stage()
        assert N.move_layer(nodes, "c", 5) is nodes
        assert [n["id"] for n in N.move_layer(nodes, "c", -9)] == ["c", "a", "b"]
