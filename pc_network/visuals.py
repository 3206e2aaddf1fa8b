from typing import Dict, List, Sequence, Tuple

import networkx as nx
import numpy as np
import pandas as pd

from pc_network.config import (
    EDGE_WIDTH_RANGE, FALLBACK_COLOR, FRAME_COLOR, NO_FRAME, NODE_SIZE_RANGE, NON_PC,
    NON_PC_SHAPE, PC_SHAPE, PC_SPECIALIST, NON_SPECIALIST_PC, SPECIALTY_COLOR,
)


PC_PROVIDING = (PC_SPECIALIST, NON_SPECIALIST_PC)
NODE_VISUAL_FIELDS = ("shape", "color", "frame", "size")
EDGE_VISUAL_FIELDS = ("width",)


def shape_for(pc_type) -> str:
    """Square for providers who delivered PC, circle for everyone else."""
    return PC_SHAPE if pc_type in PC_PROVIDING else NON_PC_SHAPE


def color_for(specialty_group) -> str:
    return SPECIALTY_COLOR.get(specialty_group, FALLBACK_COLOR)


def frame_for(pc_type) -> str:
    return FRAME_COLOR if pc_type in PC_PROVIDING else NO_FRAME


def encode_visuals(attrs: pd.DataFrame) -> pd.DataFrame:
    """Add shape / color / frame columns from pc_type and specialty_group."""
    out = attrs.copy()
    out["shape"] = out["pc_type"].map(shape_for)
    out["color"] = out["specialty_group"].map(color_for)
    out["frame"] = out["pc_type"].map(frame_for)
    return out


def rescale(values: Sequence, to: Tuple[float, float]) -> np.ndarray:
    """
    Linear min-max rescale into `to`, ignoring missing values.
    A zero-width input range maps every value to the midpoint of `to`;
    missing inputs stay NaN.
    """
    numeric = pd.to_numeric(pd.Series(list(values), dtype="object"), errors="coerce")
    arr = numeric.to_numpy(dtype=float, na_value=np.nan)
    lo, hi = to
    finite = arr[~np.isnan(arr)]
    if finite.size == 0:
        return arr
    vmin, vmax = finite.min(), finite.max()
    if vmax == vmin:
        return np.where(np.isnan(arr), np.nan, (lo + hi) / 2)
    return lo + (arr - vmin) / (vmax - vmin) * (hi - lo)


def attach_region_visuals(G: nx.Graph) -> nx.Graph:
    """
    Copy of a region subgraph with a complete visual field set on every node
    and edge: shape, color, frame, size (nodes) and width (edges).
    Shape, color and frame already resolved on a node are kept as-is.
    """
    H = G.copy()
    nodes = list(H.nodes())
    sizes = rescale([H.nodes[n].get("patient_volume") for n in nodes], NODE_SIZE_RANGE)
    for n, size in zip(nodes, sizes):
        data = H.nodes[n]
        pc_type = data.get("pc_type", NON_PC)
        if data.get("shape") is None:
            data["shape"] = shape_for(pc_type)
        if data.get("color") is None:
            data["color"] = color_for(data.get("specialty_group"))
        if data.get("frame") is None:
            data["frame"] = frame_for(pc_type)
        data["size"] = NODE_SIZE_RANGE[0] if np.isnan(size) else float(size)

    edges = list(H.edges())
    widths = rescale([H.edges[e].get("weight") for e in edges], EDGE_WIDTH_RANGE)
    for e, width in zip(edges, widths):
        H.edges[e]["width"] = EDGE_WIDTH_RANGE[0] if np.isnan(width) else float(width)
    return H


def missing_visual_fields(G: nx.Graph) -> Dict[str, List]:
    """Nodes / edges lacking any visual field, keyed by 'nodes' and 'edges'."""
    bad_nodes = [n for n, d in G.nodes(data=True)
                 if any(d.get(f) is None for f in NODE_VISUAL_FIELDS)]
    bad_edges = [(u, v) for u, v, d in G.edges(data=True)
                 if any(d.get(f) is None for f in EDGE_VISUAL_FIELDS)]
    return {"nodes": bad_nodes, "edges": bad_edges}
