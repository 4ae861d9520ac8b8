"""Input (channel) list derived from the placed nodes."""
from __future__ import annotations

import csv
import io
import logging
import math
import re
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("instrument", "mic", "stand", "notes", "cables")

# Presets that win over the channel list
PRESET_PROFILES = {
    "KICK DRUM": {
        "instrument": "KICK DRUM",
        "mic": "Kick Mic (Beta 52/B91)",
        "stand": "Short Boom",
        "notes": "",
        "cables": "",
    },
}


def normalize_key(value) -> str:
    return re.sub(r"\s+", " ", str(value or "").strip()).upper()


def parse_channel_list(text: str) -> dict[str, dict[str, str]]:
    """Read channel defaults keyed by normalized instrument name.

    The header row is the first one holding both INSTRUMENT and MIC / DI;
    rows above it (titles, spacers) are skipped. The first row for an
    instrument wins and rows with nothing but the instrument are ignored.
    """
    rows = list(csv.reader(io.StringIO(text or "")))
    header_idx = next(
        (
            i
            for i, row in enumerate(rows)
            if any(normalize_key(c) == "INSTRUMENT" for c in row)
            and any(normalize_key(c) == "MIC / DI" for c in row)
        ),
        -1,
    )
    if header_idx < 0:
        return {}

    header = [normalize_key(c) for c in rows[header_idx]]

    def col(name: str) -> int:
        return header.index(name) if name in header else -1

    idx = {
        "total": col("TOTAL"),
        "instrument": col("INSTRUMENT"),
        "mic": col("MIC / DI"),
        "stand": col("STAND"),
        "notes": col("NOTES"),
        "cables": col("CABLES"),
    }

    def cell(row: list[str], key: str) -> str:
        i = idx[key]
        return row[i].strip() if 0 <= i < len(row) else ""

    defaults: dict[str, dict[str, str]] = {}
    for row in rows[header_idx + 1:]:
        key = normalize_key(cell(row, "instrument"))
        if not key or key in defaults:
            continue
        values = {k: cell(row, k) for k in ("total", "mic", "stand", "notes", "cables")}
        if not any(values.values()):
            continue
        values.pop("total")
        defaults[key] = values
    return defaults


def load_channel_list(path: Optional[str]) -> dict[str, dict[str, str]]:
    if not path:
        return {}
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as exc:
        logger.warning("Channel list %s unreadable: %s", path, exc)
        return {}
    defaults = parse_channel_list(text)
    logger.info("Loaded %d channel defaults from %s", len(defaults), path)
    return defaults


def default_profile(asset_name: Optional[str], defaults: dict[str, dict[str, str]]) -> dict[str, str]:
    key = normalize_key(asset_name)
    if key in PRESET_PROFILES:
        return dict(PRESET_PROFILES[key])
    name = str(asset_name or "")
    found = defaults.get(key)
    if found:
        return {"instrument": name, **{k: found.get(k, "") for k in ("mic", "stand", "notes", "cables")}}
    return {"instrument": name, "mic": "", "stand": "", "notes": "", "cables": ""}


def _num(value, fallback: float) -> float:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return fallback
    return f if math.isfinite(f) else fallback


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_input_rows(nodes: list[dict], assets_by_id: dict[str, Any]) -> list[dict]:
    """One row per asset node, top-to-bottom then left-to-right, numbered from 1.

    ``assets_by_id`` maps the node's asset id (as a string) to anything with
    ``name``/``category``/``section`` attributes or keys.
    """
    def attr(obj, name: str) -> str:
        if obj is None:
            return ""
        value = obj.get(name) if isinstance(obj, dict) else getattr(obj, name, "")
        return str(value or "")

    rows = []
    for node in nodes:
        if node.get("type") != "asset":
            continue
        asset = assets_by_id.get(str(node.get("asset_id")))
        profile = node.get("profile") if isinstance(node.get("profile"), dict) else {}
        item = attr(asset, "name") or "Unknown"
        rows.append(
            {
                "asset_id": node.get("asset_id"),
                "item": item,
                "category": attr(asset, "category"),
                "section": attr(asset, "section"),
                "label": str(node.get("label") or ""),
                "x": _num(node.get("x"), 0),
                "y": _num(node.get("y"), 0),
                "rotation": _num(node.get("rotation"), 0),
                "scale": _num(node.get("scale"), 1),
                "locked": bool(node.get("locked")),
                "instrument": str(profile.get("instrument") or attr(asset, "name")),
                "mic": str(profile.get("mic") or ""),
                "stand": str(profile.get("stand") or ""),
                "notes": str(profile.get("notes") or ""),
                "cables": str(profile.get("cables") or ""),
            }
        )

    rows.sort(key=lambda r: (r["y"], r["x"]))
    for order, row in enumerate(rows, start=1):
        row["order"] = order
        row["x"] = _round_half_up(row["x"])
        row["y"] = _round_half_up(row["y"])
        row["rotation"] = _round_half_up(row["rotation"])
        row["scale"] = _round_half_up(row["scale"] * 100) / 100
    return rows
