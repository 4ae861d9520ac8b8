"""Pure edits over a plot's node list.

Every function takes the current list of node dicts and returns a new list;
when an edit changes nothing the input list itself is returned so the history
does not record an empty step.
"""
from __future__ import annotations

import math
import uuid
from typing import Any, Optional

MIN_SCALE = 0.25
MAX_SCALE = 4.0
DUPLICATE_OFFSET = 24
SCALE_STEP = 1.12
ROTATE_STEP = 15

Node = dict[str, Any]


class EditError(Exception):
    pass


class NodeNotFound(EditError):
    pass


class NodeLocked(EditError):
    pass


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def new_id() -> str:
    return uuid.uuid4().hex


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise EditError(f"{field} must be a number")
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise EditError(f"{field} must be a number") from None
    if not math.isfinite(out):
        raise EditError(f"{field} must be finite")
    return out


def _scale(value: Any) -> float:
    return clamp(abs(_number(value, "scale")), MIN_SCALE, MAX_SCALE)


def _index(nodes: list[Node], node_id: str) -> int:
    for i, node in enumerate(nodes):
        if node.get("id") == node_id:
            return i
    raise NodeNotFound(node_id)


def find_node(nodes: list[Node], node_id: str) -> Node:
    return nodes[_index(nodes, node_id)]


def _replace(nodes: list[Node], node_id: str, patch: dict, *, allow_locked: bool = False) -> list[Node]:
    i = _index(nodes, node_id)
    node = nodes[i]
    if node.get("locked") and not allow_locked:
        raise NodeLocked(node_id)
    updated = {**node, **patch}
    if updated == node:
        return nodes
    out = list(nodes)
    out[i] = updated
    return out


def make_node(asset_id: str, x: float, y: float, profile: Optional[dict] = None, node_id: Optional[str] = None) -> Node:
    return {
        "id": node_id or new_id(),
        "type": "asset",
        "asset_id": asset_id,
        "x": x,
        "y": y,
        "rotation": 0,
        "scale": 1,
        "label": "",
        "flip_x": False,
        "locked": False,
        "profile": profile,
    }


def _ensure_free(nodes: list[Node], node_id: str) -> None:
    if any(n.get("id") == node_id for n in nodes):
        raise EditError(f"Node {node_id!r} already exists")


def add_node(nodes: list[Node], node: Node) -> list[Node]:
    _ensure_free(nodes, node["id"])
    return [*nodes, node]


def delete_node(nodes: list[Node], node_id: str) -> list[Node]:
    out = [n for n in nodes if n.get("id") != node_id]
    return nodes if len(out) == len(nodes) else out


def duplicate_node(nodes: list[Node], node_id: str, new_node_id: Optional[str] = None) -> list[Node]:
    src = find_node(nodes, node_id)
    if src.get("locked"):
        raise NodeLocked(node_id)
    copy_id = new_node_id or new_id()
    _ensure_free(nodes, copy_id)
    copy = {
        **src,
        "id": copy_id,
        "x": (src.get("x") or 0) + DUPLICATE_OFFSET,
        "y": (src.get("y") or 0) + DUPLICATE_OFFSET,
    }
    return [*nodes, copy]


EDITABLE_FIELDS = ("x", "y", "rotation", "scale", "label", "flip_x")


def update_node(nodes: list[Node], node_id: str, patch: dict) -> list[Node]:
    """Merge ``patch`` into a node; ``id``, ``type``, ``asset_id`` and ``locked`` are not patchable."""
    unknown = set(patch) - set(EDITABLE_FIELDS)
    if unknown:
        raise EditError(f"Cannot update {', '.join(sorted(unknown))}")
    clean: dict[str, Any] = {}
    for key, value in patch.items():
        if key == "scale":
            clean[key] = _scale(value)
        elif key == "label":
            clean[key] = "" if value is None else str(value)
        elif key == "flip_x":
            if not isinstance(value, bool):
                raise EditError("flip_x must be true or false")
            clean[key] = value
        else:
            clean[key] = _number(value, key)
    return _replace(nodes, node_id, clean)


def move_node(nodes: list[Node], node_id: str, x: float, y: float) -> list[Node]:
    return _replace(nodes, node_id, {"x": _number(x, "x"), "y": _number(y, "y")})


def rotate_node(nodes: list[Node], node_id: str, delta_deg: float) -> list[Node]:
    node = find_node(nodes, node_id)
    return _replace(nodes, node_id, {"rotation": (node.get("rotation") or 0) + _number(delta_deg, "rotation")})


def scale_node(nodes: list[Node], node_id: str, factor: float) -> list[Node]:
    node = find_node(nodes, node_id)
    scale = clamp((node.get("scale") or 1) * _number(factor, "factor"), MIN_SCALE, MAX_SCALE)
    return _replace(nodes, node_id, {"scale": scale})


def transform_node(
    nodes: list[Node],
    node_id: str,
    *,
    scale: Optional[float] = None,
    rotation: Optional[float] = None,
    flip_x: Optional[bool] = None,
) -> list[Node]:
    """Apply an absolute transform, e.g. the end of a handle drag or pinch."""
    patch: dict[str, Any] = {}
    if scale is not None:
        patch["scale"] = _scale(scale)
    if rotation is not None:
        patch["rotation"] = _number(rotation, "rotation")
    if flip_x is not None:
        if not isinstance(flip_x, bool):
            raise EditError("flip_x must be true or false")
        patch["flip_x"] = flip_x
    return _replace(nodes, node_id, patch) if patch else nodes


def flip_node(nodes: list[Node], node_id: str) -> list[Node]:
    node = find_node(nodes, node_id)
    return _replace(nodes, node_id, {"flip_x": not node.get("flip_x")})


def set_label(nodes: list[Node], node_id: str, label: str) -> list[Node]:
    return _replace(nodes, node_id, {"label": str(label)})


def set_profile(nodes: list[Node], node_id: str, profile: dict) -> list[Node]:
    node = find_node(nodes, node_id)
    merged = {**(node.get("profile") or {}), **{k: str(v) for k, v in profile.items()}}
    return _replace(nodes, node_id, {"profile": merged})


def toggle_lock(nodes: list[Node], node_id: str) -> list[Node]:
    node = find_node(nodes, node_id)
    return _replace(nodes, node_id, {"locked": not node.get("locked")}, allow_locked=True)


def move_layer(nodes: list[Node], node_id: str, delta: int) -> list[Node]:
    """Shift a node in paint order; later nodes are drawn on top."""
    src = _index(nodes, node_id)
    if nodes[src].get("locked"):
        raise NodeLocked(node_id)
    dst = int(clamp(src + delta, 0, len(nodes) - 1))
    if dst == src:
        return nodes
    out = list(nodes)
    item = out.pop(src)
    out.insert(dst, item)
    return out
