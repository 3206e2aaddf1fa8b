"""
Palliative-care provider network pipeline

1. Load encounter records
2. Build the provider collaboration network (shared-patient projection)
3. Resolve provider attributes aligned to node order
4. Export the network and attribute table
5. Render one subnetwork figure per HRR

Integrity and alignment errors abort before any figure is written. A region
whose rendering fails is logged and skipped; the remaining regions still run.
"""

import logging
from typing import Any, Dict, Optional

import networkx as nx
import pandas as pd
from tqdm import tqdm

from pc_network.attributes import AttributeResolver
from pc_network.config import DEFAULT_LAYOUT, MIN_SHARED_PATIENTS, OUT_DIR, SQLITE_TABLE
from pc_network.data_loader import EncounterLoader, prepare_records
from pc_network.exporter import ResultsExporter
from pc_network.graph_builder import ProviderNetworkBuilder
from pc_network.partition import partition_by_region
from pc_network.renderer import NetworkRenderer

logger = logging.getLogger(__name__)


def build_network(records: pd.DataFrame,
                  min_shared_patients: int = MIN_SHARED_PATIENTS,
                  prepared: bool = False):
    """
    Records -> (attributed provider graph, aligned attribute table).
    Pass prepared=True for records that already went through prepare_records.
    """
    if not prepared:
        records = prepare_records(records)
    G = ProviderNetworkBuilder(min_shared_patients).build(records)
    return AttributeResolver(records).resolve(G)


def render_regions(G: nx.Graph, attributes: pd.DataFrame,
                   renderer: NetworkRenderer) -> Dict[str, Any]:
    figures, failed = {}, {}
    regions = list(partition_by_region(G, attributes))
    for region_subgraph in tqdm(regions, desc="Rendering HRRs", disable=not regions):
        region = region_subgraph.region
        try:
            figures[region] = renderer.render(region_subgraph)
        except Exception as e:
            logger.error(f"HRR {region}: rendering failed: {e}", exc_info=True)
            failed[region] = str(e)
    return {"figures": figures, "failed": failed}


def run_pipeline(input_path: Optional[str] = None,
                 records: Optional[pd.DataFrame] = None,
                 output_dir: str = str(OUT_DIR),
                 min_shared_patients: int = MIN_SHARED_PATIENTS,
                 layout: str = DEFAULT_LAYOUT,
                 table: str = SQLITE_TABLE,
                 render: bool = True) -> Dict[str, Any]:
    """
    Run the full pipeline from a file path or an in-memory record frame.
    Returns the graph, attribute table, exported paths and per-region results.
    """
    if records is not None:
        records = prepare_records(records)
    elif input_path is not None:
        records = EncounterLoader(input_path, table=table).load()
    else:
        raise ValueError("Provide either input_path or records")

    logger.info("[1/3] Building provider network...")
    G, attributes = build_network(records, min_shared_patients, prepared=True)

    logger.info("[2/3] Exporting network and attributes...")
    graph_path, attributes_path = ResultsExporter(output_dir).export_all(G, attributes)

    results = {"figures": {}, "failed": {}}
    if render:
        logger.info("[3/3] Rendering HRR subnetworks...")
        results = render_regions(G, attributes, NetworkRenderer(output_dir, layout))
        logger.info(f"Figures written: {len(results['figures'])}, failed: {len(results['failed'])}")

    return {
        "graph": G,
        "attributes": attributes,
        "graph_path": graph_path,
        "attributes_path": attributes_path,
        **results,
    }
