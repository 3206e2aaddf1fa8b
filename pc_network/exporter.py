import os
import pickle
import logging
from typing import Tuple

import networkx as nx
import pandas as pd

from pc_network.config import ATTRIBUTES_FILE, GRAPH_FILE, OUT_DIR

logger = logging.getLogger(__name__)


class ResultsExporter:
    """Module for persisting the provider network and its attribute table"""
    def __init__(self, output_dir: str = str(OUT_DIR)):
        self.output_dir = str(output_dir)
        os.makedirs(self.output_dir, exist_ok=True)

    def export_graph(self, G: nx.Graph, filename: str = GRAPH_FILE) -> str:
        """Pickle the attributed provider graph"""
        filepath = os.path.join(self.output_dir, filename)
        with open(filepath, "wb") as f:
            pickle.dump(G, f, pickle.HIGHEST_PROTOCOL)
        logger.info(f"Provider network exported to: {filepath}")
        return filepath

    def export_attributes(self, attributes: pd.DataFrame,
                          filename: str = ATTRIBUTES_FILE) -> str:
        """Export node attributes to CSV, one row per node in node order"""
        filepath = os.path.join(self.output_dir, filename)
        attributes.to_csv(filepath, index=False)
        logger.info(f"Node attributes exported to: {filepath}")
        return filepath

    def export_all(self, G: nx.Graph, attributes: pd.DataFrame) -> Tuple[str, str]:
        return self.export_graph(G), self.export_attributes(attributes)


def load_provider_network(graph_path: str, attributes_path: str) -> Tuple[nx.Graph, pd.DataFrame]:
    """Read back a graph/attribute pair written by ResultsExporter."""
    if not os.path.exists(graph_path):
        raise FileNotFoundError(f"Provider network not found at {graph_path}")
    with open(graph_path, "rb") as f:
        G = pickle.load(f)
    attributes = pd.read_csv(attributes_path, dtype={"npi": str, "provider_hrr": str})
    return G, attributes
