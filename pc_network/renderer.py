import os
import logging

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.lines import Line2D
from matplotlib.patches import Patch

from pc_network.config import (
    DEFAULT_LAYOUT, EDGE_COLOR, FIG_DPI, FIG_SIZE, FIGURE_PREFIX, HOSPITALIST,
    LAYOUT_SEED, LAYOUTS, MEDICAL_ONCOLOGIST, NON_PC_SHAPE, OTHERS, OUT_DIR, PC_SHAPE,
    PC_SPECIALIST, PCP, RADIATION_ONCOLOGIST, SPECIALTY_COLOR, SURGEON,
)
from pc_network.partition import RegionSubgraph
from pc_network.visuals import attach_region_visuals, missing_visual_fields

logger = logging.getLogger(__name__)

MARKERS = {PC_SHAPE: "s", NON_PC_SHAPE: "o"}
# vertex size units -> matplotlib marker area (points^2)
NODE_AREA_SCALE = 12.0

LEGEND_SPECIALTIES = [
    ("PC Specialist", SPECIALTY_COLOR[PC_SPECIALIST]),
    ("Medical Oncologist", SPECIALTY_COLOR[MEDICAL_ONCOLOGIST]),
    ("Radiation Oncologist", SPECIALTY_COLOR[RADIATION_ONCOLOGIST]),
    ("Surgeon", SPECIALTY_COLOR[SURGEON]),
    ("PCP", SPECIALTY_COLOR[PCP]),
    ("Hospitalist", SPECIALTY_COLOR[HOSPITALIST]),
    ("Others", SPECIALTY_COLOR[OTHERS]),
]


def figure_name(region) -> str:
    safe = "".join("_" if ch in '<>:"/\\|?* ' else ch for ch in str(region))
    return f"{FIGURE_PREFIX}{safe or 'unknown'}.png"


def compute_layout(G: nx.Graph, layout: str = DEFAULT_LAYOUT) -> dict:
    """Kamada-Kawai for small subnetworks, seeded spring layout otherwise."""
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown layout {layout!r}; expected one of {LAYOUTS}")
    if layout == "kk" and G.number_of_nodes() > 1:
        return nx.kamada_kawai_layout(G, weight="weight")
    return nx.spring_layout(G, weight="weight", seed=LAYOUT_SEED)


class NetworkRenderer:
    """Module for drawing one HRR subnetwork per image"""
    def __init__(self, output_dir: str = str(OUT_DIR), layout: str = DEFAULT_LAYOUT):
        if layout not in LAYOUTS:
            raise ValueError(f"Unknown layout {layout!r}; expected one of {LAYOUTS}")
        self.output_dir = str(output_dir)
        self.layout = layout
        os.makedirs(self.output_dir, exist_ok=True)

    def render(self, region_subgraph: RegionSubgraph) -> str:
        """Draw the region subgraph and return the PNG path"""
        region = region_subgraph.region
        G = attach_region_visuals(region_subgraph.graph)
        missing = missing_visual_fields(G)
        if missing["nodes"] or missing["edges"]:
            raise ValueError(
                f"HRR {region}: {len(missing['nodes'])} nodes and "
                f"{len(missing['edges'])} edges lack visual fields"
            )

        pos = compute_layout(G, self.layout)
        fig, ax = plt.subplots(figsize=FIG_SIZE)
        try:
            nx.draw_networkx_edges(
                G, pos, ax=ax, edge_color=EDGE_COLOR,
                width=[d["width"] for _, _, d in G.edges(data=True)],
            )
            for shape, marker in MARKERS.items():
                nodelist = [n for n, d in G.nodes(data=True) if d["shape"] == shape]
                if not nodelist:
                    continue
                nx.draw_networkx_nodes(
                    G, pos, ax=ax, nodelist=nodelist, node_shape=marker,
                    node_color=[G.nodes[n]["color"] for n in nodelist],
                    node_size=[G.nodes[n]["size"] ** 2 * NODE_AREA_SCALE for n in nodelist],
                    edgecolors=[G.nodes[n]["frame"] for n in nodelist],
                    linewidths=0.8,
                )
            ax.legend(handles=self._legend_handles(), loc="upper right", fontsize=8, frameon=False)
            ax.set_title(f"HRR: {region} — Palliative Care (PC) Subnetwork", fontsize=12)
            ax.axis("off")
            fig.tight_layout()
            filepath = os.path.join(self.output_dir, figure_name(region))
            fig.savefig(filepath, dpi=FIG_DPI)
        finally:
            plt.close(fig)
        logger.info(f"HRR {region}: {G.number_of_nodes()} providers, "
                    f"{G.number_of_edges()} edges -> {filepath}")
        return filepath

    @staticmethod
    def _legend_handles():
        blank = Patch(facecolor="none", edgecolor="none", label=" ")
        handles = [
            Patch(facecolor="none", edgecolor="none", label="Provided PC (shape)"),
            Line2D([], [], marker="s", linestyle="", markerfacecolor="white",
                   markeredgecolor="black", label="Yes"),
            Line2D([], [], marker="o", linestyle="", markerfacecolor="white",
                   markeredgecolor="black", label="No"),
            blank,
            Patch(facecolor="none", edgecolor="none", label="Provider Specialty (color)"),
        ]
        for label, color in LEGEND_SPECIALTIES:
            handles.append(Line2D([], [], marker="o", linestyle="", markerfacecolor=color,
                                  markeredgecolor=color, label=label))
        return handles
