import logging
from dataclasses import dataclass
from typing import Iterator, List

import networkx as nx
import pandas as pd

from pc_network.config import NON_PC, OTHERS

logger = logging.getLogger(__name__)


@dataclass
class RegionSubgraph:
    region: str
    graph: nx.Graph


def region_values(attributes: pd.DataFrame) -> List:
    """Distinct non-missing regions in order of first appearance."""
    return list(pd.unique(attributes["provider_hrr"].dropna()))


def select_region_providers(attributes: pd.DataFrame, region) -> List:
    """
    NPIs in `region`, minus the declutter bucket: providers who are both
    Non-PC and in the "Others" specialty group.
    """
    in_region = attributes["provider_hrr"].eq(region).fillna(False).astype(bool)
    uninteresting = (attributes["pc_type"] == NON_PC) & (attributes["specialty_group"] == OTHERS)
    return list(attributes.loc[in_region & ~uninteresting, "npi"])


def induce_region_subgraph(G: nx.Graph, npis) -> nx.Graph:
    """Induced subgraph over `npis`, with self-loops and isolated nodes removed."""
    sub = G.subgraph(npis).copy()
    sub.remove_edges_from(list(nx.selfloop_edges(sub)))
    sub.remove_nodes_from([n for n, deg in sub.degree() if deg == 0])
    return sub


def partition_by_region(G: nx.Graph, attributes: pd.DataFrame) -> Iterator[RegionSubgraph]:
    """One RegionSubgraph per region that keeps at least one connected provider."""
    for region in region_values(attributes):
        npis = select_region_providers(attributes, region)
        sub = induce_region_subgraph(G, npis)
        if sub.number_of_nodes() == 0:
            logger.info(f"HRR {region}: no connected providers after filtering, skipped")
            continue
        yield RegionSubgraph(region=region, graph=sub)
