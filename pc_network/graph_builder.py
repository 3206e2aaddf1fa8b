import logging
from typing import Iterable, List, Sequence, Set

import networkx as nx
import pandas as pd
from networkx.algorithms import bipartite

from pc_network.config import MIN_SHARED_PATIENTS
from pc_network.errors import DataIntegrityError

logger = logging.getLogger(__name__)

PATIENT = 0
PROVIDER = 1
NODE_TYPES = {PATIENT: "patient", PROVIDER: "provider"}


def build_incidence_pairs(records: pd.DataFrame) -> pd.DataFrame:
    """
    Unique (patient_id, npi) pairs.
    Repeat encounters between the same patient and provider collapse to one
    row, so shared-patient counts never include repeat visits.
    """
    pairs = (
        records[["patient_id", "npi"]]
        .dropna()
        .drop_duplicates()
        .sort_values(["npi", "patient_id"], kind="mergesort")
        .reset_index(drop=True)
    )
    return pairs


def build_bipartite_graph(pairs: pd.DataFrame) -> nx.Graph:
    """Patient-provider incidence graph; every node carries a `bipartite` label."""
    patients = sorted(pairs["patient_id"].unique())
    providers = sorted(pairs["npi"].unique())
    collisions = set(patients) & set(providers)
    if collisions:
        sample = sorted(collisions)[:5]
        raise DataIntegrityError(
            f"{len(collisions)} ids are used both as patient_id and npi (e.g. {sample})"
        )

    B = nx.Graph()
    B.add_nodes_from(patients, bipartite=PATIENT, node_type=NODE_TYPES[PATIENT])
    B.add_nodes_from(providers, bipartite=PROVIDER, node_type=NODE_TYPES[PROVIDER])
    B.add_edges_from(pairs[["patient_id", "npi"]].itertuples(index=False, name=None))
    return B


def bipartite_sides(B: nx.Graph) -> List[List]:
    """Split nodes by their `bipartite` label, ordered by label value."""
    sides = {}
    for node, label in B.nodes(data="bipartite"):
        if label is None:
            raise DataIntegrityError(f"Node {node!r} has no bipartite type label")
        sides.setdefault(label, []).append(node)
    if len(sides) > 2:
        raise DataIntegrityError(f"Expected two node classes, found {sorted(sides)}")
    return [sorted(sides[label]) for label in sorted(sides)]


def choose_projection_side(candidates: Sequence[Iterable], provider_ids: Iterable) -> int:
    """
    Index of the candidate node set that overlaps the provider-id universe most.
    Ties go to the earlier candidate.
    """
    universe: Set = set(provider_ids)
    best_idx, best_hits = 0, -1
    for idx, nodes in enumerate(candidates):
        hits = sum(1 for n in nodes if n in universe)
        if hits > best_hits:
            best_idx, best_hits = idx, hits
    return best_idx


def apply_min_shared_patients(G: nx.Graph, min_shared_patients: int) -> nx.Graph:
    """Drop edges whose shared-patient count is below the threshold; nodes stay."""
    if min_shared_patients < 1:
        raise ValueError(f"min_shared_patients must be >= 1, got {min_shared_patients}")
    H = G.copy()
    weak = [(u, v) for u, v, w in H.edges(data="weight") if w < min_shared_patients]
    H.remove_edges_from(weak)
    if weak:
        logger.info(f"Suppressed {len(weak)} edges sharing fewer than {min_shared_patients} patients")
    return H


def project_provider_graph(B: nx.Graph, provider_ids: Iterable,
                           min_shared_patients: int = MIN_SHARED_PATIENTS) -> nx.Graph:
    """
    Weighted provider-provider projection of a bipartite incidence graph.
    Edge weight is the number of patients both providers share.
    """
    if B.number_of_nodes() == 0:
        logger.info("No incidence pairs; provider graph is empty")
        return nx.Graph()

    sides = bipartite_sides(B)
    side = sides[choose_projection_side(sides, provider_ids)]
    G = bipartite.weighted_projected_graph(B, side)
    G.remove_edges_from(list(nx.selfloop_edges(G)))
    return apply_min_shared_patients(G, min_shared_patients)


class ProviderNetworkBuilder:
    """Module for constructing the provider collaboration network"""
    def __init__(self, min_shared_patients: int = MIN_SHARED_PATIENTS):
        self.min_shared_patients = min_shared_patients
        self.pairs = None
        self.bipartite_graph = None
        self.graph = None

    def build(self, records: pd.DataFrame) -> nx.Graph:
        """Records -> incidence pairs -> bipartite graph -> provider projection"""
        logger.info("Building patient-provider incidence...")
        self.pairs = build_incidence_pairs(records)
        self.bipartite_graph = build_bipartite_graph(self.pairs)
        logger.info(
            f"Bipartite graph: {self.pairs['patient_id'].nunique()} patients, "
            f"{self.pairs['npi'].nunique()} providers, {len(self.pairs)} incidence edges"
        )
        self.graph = project_provider_graph(
            self.bipartite_graph, records["npi"].dropna().unique(), self.min_shared_patients
        )
        logger.info(
            f"Providers in projected network: {self.graph.number_of_nodes()} "
            f"({self.graph.number_of_edges()} edges)"
        )
        return self.graph
