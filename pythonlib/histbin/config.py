from __future__ import annotations

import difflib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .axis import Axis, AxisKind, EquidistantAxis, GrowAxis
from .hist import Hist

_KIND_ALIASES = {
    "equidistant": AxisKind.EQUIDISTANT,
    "eq": AxisKind.EQUIDISTANT,
    "grow": AxisKind.GROW,
    "growable": AxisKind.GROW,
}


def _parse_kind(value: Any, where: str) -> AxisKind:
    name = str(value).strip().lower()
    if name in _KIND_ALIASES:
        return _KIND_ALIASES[name]
    msg = f"{where}: unknown axis kind {value!r}"
    suggestion = difflib.get_close_matches(name, list(_KIND_ALIASES), n=1)
    if suggestion:
        msg += f", did you mean {suggestion[0]!r}?"
    raise ValueError(msg)


def _require(d: Mapping, keys, where: str) -> None:
    missing = [k for k in keys if k not in d]
    if missing:
        raise ValueError(f"{where}: missing key(s) {', '.join(missing)}")


def axis_from_dict(d: Mapping, where: str = "axis") -> Axis:
    """
    Build an axis from a descriptor mapping.

    ``{kind: equidistant, nbins: 10, low: 0.0, high: 1.0}``
    ``{kind: grow, nbins: 3, low: 3.0, high: 5.3}``
    ``{kind: grow, edges: [0.0, 0.5, 2.0]}``
    """
    if not isinstance(d, Mapping):
        raise ValueError(f"{where}: expected a mapping, got {type(d).__name__}")
    _require(d, ["kind"], where)
    kind = _parse_kind(d["kind"], where)

    if kind is AxisKind.GROW and "edges" in d:
        allowed = {"kind", "edges"}
        extra = sorted(set(d) - allowed)
        if extra:
            raise ValueError(f"{where}: unexpected key(s) {', '.join(extra)}")
        return GrowAxis.from_edges(d["edges"])

    _require(d, ["nbins", "low", "high"], where)
    extra = sorted(set(d) - {"kind", "nbins", "low", "high"})
    if extra:
        raise ValueError(f"{where}: unexpected key(s) {', '.join(extra)}")
    if kind is AxisKind.EQUIDISTANT:
        return EquidistantAxis(d["nbins"], d["low"], d["high"])
    return GrowAxis(d["nbins"], d["low"], d["high"])


def axes_from_config(cfg: Mapping) -> List[Axis]:
    if not isinstance(cfg, Mapping) or "axes" not in cfg:
        raise ValueError("config: missing top-level 'axes' list")
    descriptors = cfg["axes"]
    if not isinstance(descriptors, list) or not descriptors:
        raise ValueError("config: 'axes' must be a non-empty list")
    return [axis_from_dict(d, where=f"axes[{k}]") for k, d in enumerate(descriptors)]


def hist_from_config(cfg: Mapping, dtype=float) -> Hist:
    return Hist(axes_from_config(cfg), dtype=dtype)


def load_config(path) -> Dict[str, Any]:
    path = Path(path)
    with path.open("r") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return cfg


def axis_to_dict(axis: Axis) -> Dict[str, Any]:
    """Descriptor of an axis, inverse of ``axis_from_dict``."""
    if axis.kind is AxisKind.EQUIDISTANT:
        return {
            "kind": "equidistant",
            "nbins": axis.nbins_no_over,
            "low": axis.low,
            "high": axis.high,
        }
    return {"kind": "grow", "edges": axis.edges.tolist()}
