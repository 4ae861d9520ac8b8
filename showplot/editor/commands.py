"""Edit operations as data, so a batch can be applied as a single history step."""
from __future__ import annotations

from typing import Any, Optional

from . import nodes as N
from .gestures import PinchGesture, StageRect, Touch, drop_point
from .inputs import default_profile


def _touches(raw) -> list[Touch]:
    out = []
    for point in raw or []:
        if isinstance(point, dict):
            out.append(Touch(float(point["x"]), float(point["y"])))
        else:
            out.append(Touch(float(point[0]), float(point[1])))
    return out


def _node_id(op: dict) -> str:
    node_id = op.get("node_id")
    if not isinstance(node_id, str) or not node_id:
        raise N.EditError("node_id is required")
    return node_id


def _add(nodes: list, op: dict, asset_names: dict[str, str], defaults: dict) -> list:
    asset_id = str(op.get("asset_id") or "")
    if asset_id not in asset_names:
        raise N.EditError(f"Unknown asset {asset_id!r}")
    if "rect" in op:
        point = drop_point(StageRect(**op["rect"]), float(op["client_x"]), float(op["client_y"]))
        if point is None:
            # dropped outside the stage
            return nodes
        x, y = point
    else:
        x, y = float(op.get("x", 0)), float(op.get("y", 0))
    profile = default_profile(asset_names[asset_id], defaults)
    return N.add_node(nodes, N.make_node(asset_id, x, y, profile=profile, node_id=op.get("new_id")))


def _pinch(nodes: list, op: dict) -> list:
    node_id = _node_id(op)
    gesture = PinchGesture.start(_touches(op.get("start")), N.find_node(nodes, node_id))
    if gesture is None:
        return nodes
    result = gesture.update(_touches(op.get("current")))
    if result is None:
        return nodes
    scale, rotation = result
    return N.transform_node(nodes, node_id, scale=scale, rotation=rotation)


def apply_op(
    nodes: list,
    op: dict,
    asset_names: Optional[dict[str, str]] = None,
    defaults: Optional[dict] = None,
) -> list:
    kind = op.get("op")
    names = asset_names or {}
    if kind == "add":
        return _add(nodes, op, names, defaults or {})
    if kind == "pinch":
        return _pinch(nodes, op)

    node_id = _node_id(op)
    if kind == "delete":
        return N.delete_node(nodes, node_id)
    if kind == "duplicate":
        return N.duplicate_node(nodes, node_id, op.get("new_id"))
    if kind == "update":
        return N.update_node(nodes, node_id, op.get("patch") or {})
    if kind == "move":
        return N.move_node(nodes, node_id, float(op["x"]), float(op["y"]))
    if kind == "rotate":
        return N.rotate_node(nodes, node_id, float(op.get("delta", N.ROTATE_STEP)))
    if kind == "scale":
        return N.scale_node(nodes, node_id, float(op.get("factor", N.SCALE_STEP)))
    if kind == "transform":
        return N.transform_node(nodes, node_id, scale=op.get("scale"), rotation=op.get("rotation"), flip_x=op.get("flip_x"))
    if kind == "flip":
        return N.flip_node(nodes, node_id)
    if kind == "label":
        return N.set_label(nodes, node_id, op.get("label") or "")
    if kind == "profile":
        return N.set_profile(nodes, node_id, op.get("profile") or {})
    if kind == "lock":
        return N.toggle_lock(nodes, node_id)
    if kind == "layer":
        return N.move_layer(nodes, node_id, int(op.get("delta", 1)))
    raise N.EditError(f"Unknown operation {kind!r}")


def apply_ops(nodes: list, ops: list[dict], **kwargs: Any) -> list:
    """Apply ``ops`` in order; returns ``nodes`` itself when nothing changed."""
    out = nodes
    for op in ops:
        if not isinstance(op, dict):
            raise N.EditError("Each operation must be an object")
        try:
            out = apply_op(out, op, **kwargs)
        except (KeyError, TypeError, ValueError) as exc:
            raise N.EditError(f"Malformed {op.get('op')!r} operation: {exc}") from exc
    return out
