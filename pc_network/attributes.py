"""
Provider attribute resolution

- Normalises specialty text (missing/blank -> "Unknown")
- Groups specialties into a closed set of roles via ordered first-match rules
- Classifies palliative-care provision independently of the specialty group
- Counts distinct patients per provider over the full record set
- Aligns one attribute row to each graph node, in node order
- Computes node strength (sum of incident edge weights)
"""

import logging
from itertools import combinations
from typing import Callable, Dict, List, Tuple

import networkx as nx
import pandas as pd

from pc_network.config import (
    HOSPITALIST, MEDICAL_ONCOLOGIST, MEDONC_SPEC, NON_PC, NON_SPECIALIST_PC, OTHERS,
    PAL_TAXONOMY, PC_SPECIALIST, PCP, PCP_SPEC, RADIATION_ONCOLOGIST, SURGEON,
    SURGEON_SPEC, UNKNOWN_SPECIALTY,
)
from pc_network.errors import AlignmentError
from pc_network.visuals import encode_visuals

logger = logging.getLogger(__name__)

ATTRIBUTE_COLUMNS = ["npi", "provider_hrr", "provider_specialty", "pc_specialist_flag"]

# Each group is defined by a named set of raw specialties; evaluated top to bottom
NAMED_SPECIALTY_SETS: List[Tuple[str, frozenset]] = [
    (PCP, PCP_SPEC),
    (MEDICAL_ONCOLOGIST, MEDONC_SPEC),
    (SURGEON, SURGEON_SPEC),
    (RADIATION_ONCOLOGIST, frozenset(["Radiation Oncology"])),
    (HOSPITALIST, frozenset(["Hospitalist"])),
    (PC_SPECIALIST, frozenset([PAL_TAXONOMY])),
]


def _member_of(names: frozenset) -> Callable[[str], bool]:
    return lambda spec: spec in names


SPECIALTY_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_member_of(names), label) for label, names in NAMED_SPECIALTY_SETS
]


def assert_specialty_sets_disjoint() -> None:
    """Raise ValueError if any specialty belongs to two named sets."""
    for (label_a, set_a), (label_b, set_b) in combinations(NAMED_SPECIALTY_SETS, 2):
        shared = set_a & set_b
        if shared:
            raise ValueError(f"Specialties {sorted(shared)} map to both {label_a!r} and {label_b!r}")


def normalize_specialty(spec) -> str:
    if spec is None or pd.isna(spec):
        return UNKNOWN_SPECIALTY
    spec = str(spec).strip()
    return spec if spec else UNKNOWN_SPECIALTY


def term_spec(spec) -> str:
    """Collapse a raw specialty into its specialty group; first matching rule wins."""
    spec = normalize_specialty(spec)
    for predicate, label in SPECIALTY_RULES:
        if predicate(spec):
            return label
    return OTHERS


def is_pc_flagged(flag) -> bool:
    """True for 1 / "1" / 1.0 / True; missing or anything else is False."""
    if flag is None or pd.isna(flag):
        return False
    if isinstance(flag, str):
        flag = flag.strip()
        if flag.lower() == "true":
            return True
    try:
        return float(flag) == 1
    except (TypeError, ValueError):
        return False


def classify_pc_type(flag, spec) -> str:
    if not is_pc_flagged(flag):
        return NON_PC
    if normalize_specialty(spec) == PAL_TAXONOMY:
        return PC_SPECIALIST
    return NON_SPECIALIST_PC


def compute_patient_volume(records: pd.DataFrame) -> pd.DataFrame:
    """Distinct patients per provider across all records."""
    volume = (
        records.dropna(subset=["patient_id", "npi"])
        .groupby("npi")["patient_id"]
        .nunique()
        .rename("patient_volume")
        .reset_index()
    )
    return volume


def build_provider_attributes(records: pd.DataFrame) -> pd.DataFrame:
    """One row per provider (first record wins) with patient volume merged in."""
    attrs = records[ATTRIBUTE_COLUMNS].copy()
    attrs["provider_specialty"] = attrs["provider_specialty"].map(normalize_specialty)

    n_dupes = attrs.duplicated(subset="npi").sum()
    if n_dupes:
        logger.info(f"Keeping first attribute row for providers; dropped {n_dupes} duplicate rows")
    attrs = attrs.drop_duplicates(subset="npi", keep="first")

    attrs = attrs.merge(compute_patient_volume(records), on="npi", how="left")
    return attrs.reset_index(drop=True)


def align_to_graph(attributes: pd.DataFrame, G: nx.Graph) -> pd.DataFrame:
    """
    Reorder attribute rows to match graph node order exactly.
    Nodes without attribute data get "Unknown" specialty, no PC flag and
    missing region / volume instead of being dropped.
    """
    if "npi" not in attributes.columns:
        raise AlignmentError("Attribute table has no 'npi' column to align on")
    order = list(G.nodes())
    if order and len(attributes) and attributes["npi"].isin(order).sum() == 0:
        # every node unmatched: keys differ in type or formatting, not just coverage
        raise AlignmentError(
            f"None of the {len(order)} graph nodes match an attribute npi; check id types"
        )
    attrs = attributes.drop_duplicates(subset="npi", keep="first").set_index("npi")
    aligned = attrs.reindex(pd.Index(order, name="npi"))

    missing = aligned.index[aligned["provider_specialty"].isna()]
    if len(missing):
        logger.warning(f"{len(missing)} graph nodes have no attribute data; using Unknown")
    aligned["provider_specialty"] = aligned["provider_specialty"].map(normalize_specialty)
    aligned["pc_specialist_flag"] = aligned["pc_specialist_flag"].astype(object).where(
        aligned["pc_specialist_flag"].notna(), 0
    )
    if "patient_volume" in aligned.columns:
        aligned["patient_volume"] = aligned["patient_volume"].astype("Int64")

    aligned = aligned.reset_index()
    if len(aligned) != len(order) or list(aligned["npi"]) != order:
        raise AlignmentError(
            f"Attribute table ({len(aligned)} rows) does not match graph node order ({len(order)} nodes)"
        )
    return aligned


def compute_strength(G: nx.Graph) -> Dict:
    """Weighted degree: sum of incident edge weights per node."""
    return dict(G.degree(weight="weight"))


def _clean(value):
    return None if pd.isna(value) else value


class AttributeResolver:
    """Module for deriving provider attributes and attaching them to the network"""
    def __init__(self, records: pd.DataFrame):
        self.records = records
        assert_specialty_sets_disjoint()

    def resolve(self, G: nx.Graph) -> Tuple[nx.Graph, pd.DataFrame]:
        """
        Returns an attributed copy of G plus the aligned attribute table.
        Row i of the table describes node i of the graph.
        """
        attrs = align_to_graph(build_provider_attributes(self.records), G)
        attrs["specialty_group"] = attrs["provider_specialty"].map(term_spec)
        attrs["pc_type"] = [
            classify_pc_type(flag, spec)
            for flag, spec in zip(attrs["pc_specialist_flag"], attrs["provider_specialty"])
        ]
        strength = compute_strength(G)
        attrs["strength"] = [strength.get(n, 0) for n in attrs["npi"]]
        attrs = encode_visuals(attrs)

        H = G.copy()
        fields = {
            "spec": "provider_specialty",
            "provider_hrr": "provider_hrr",
            "specialty_group": "specialty_group",
            "pc_type": "pc_type",
            "patient_volume": "patient_volume",
            "strength": "strength",
            "shape": "shape",
            "color": "color",
            "frame": "frame",
        }
        for node_attr, col in fields.items():
            values = {n: _clean(v) for n, v in zip(attrs["npi"], attrs[col])}
            nx.set_node_attributes(H, values, name=node_attr)

        counts = attrs["specialty_group"].value_counts().to_dict()
        logger.info(f"Specialty groups: {counts}")
        return H, attrs


def resolve_attributes(G: nx.Graph, records: pd.DataFrame) -> Tuple[nx.Graph, pd.DataFrame]:
    return AttributeResolver(records).resolve(G)
