from pathlib import Path

DATA_DIR = Path("data")
INPUT_CSV = DATA_DIR / "node_attributes_data.csv"
SQLITE_TABLE = "encounters"

OUT_DIR = Path("network_figures")
GRAPH_FILE = "provider_network.pkl"
ATTRIBUTES_FILE = "node_attributes.csv"

# Encounter table layout
REQUIRED_COLUMNS = ["patient_id", "npi", "provider_hrr", "provider_specialty", "pc_specialist_flag"]
OPTIONAL_COLUMNS = ["patient_hrr", "cancer_site", "pc_flag", "encounter_year"]
ID_COLUMNS = ["patient_id", "npi"]

# Privacy suppression: edges sharing fewer patients are dropped
MIN_SHARED_PATIENTS = 1

# Specialty groupings
UNKNOWN_SPECIALTY = "Unknown"
PAL_TAXONOMY = "Hospice and Palliative Care"

PCP_SPEC = frozenset([
    "Family Medicine", "Family Practice", "General Practice", "Internal Medicine",
    "Geriatric Medicine", "Certified Clinical Nurse Specialist",
    "Nurse Practitioner", "Physician Assistant",
])
SURGEON_SPEC = frozenset([
    "General Surgery", "Orthopedic Surgery", "Cardiac Surgery", "Thoracic Surgery",
    "Vascular Surgery", "Neurosurgery", "Urology", "Ophthalmology",
    "Surgical Oncology", "Colorectal Surgery (Proctology)",
])
MEDONC_SPEC = frozenset(["Hematology-Oncology", "Medical Oncology", "Hematology"])

# Group / PC-type labels
PCP = "PCP"
MEDICAL_ONCOLOGIST = "Medical Oncologist"
SURGEON = "Surgeon"
RADIATION_ONCOLOGIST = "Radiation Oncologist"
HOSPITALIST = "Hospitalist"
PC_SPECIALIST = "Formally-Trained PC Specialist"
OTHERS = "Others"

SPECIALTY_GROUPS = [PC_SPECIALIST, MEDICAL_ONCOLOGIST, RADIATION_ONCOLOGIST,
                    SURGEON, PCP, HOSPITALIST, OTHERS]

NON_SPECIALIST_PC = "non-specialist PC"
NON_PC = "Non-PC"
PC_TYPES = [PC_SPECIALIST, NON_SPECIALIST_PC, NON_PC]

# Visual encoding (color = specialty group, shape = PC provision)
SPECIALTY_COLOR = {
    PC_SPECIALIST: "red",
    NON_SPECIALIST_PC: "#4CBB17",
    NON_PC: "lightgrey",
    MEDICAL_ONCOLOGIST: "blue",
    RADIATION_ONCOLOGIST: "orange",
    SURGEON: "purple",
    PCP: "#4CBB17",
    HOSPITALIST: "saddlebrown",
    OTHERS: "lightgrey",
}
FALLBACK_COLOR = SPECIALTY_COLOR[OTHERS]

PC_SHAPE = "square"
NON_PC_SHAPE = "circle"
FRAME_COLOR = "black"
NO_FRAME = "none"      # matplotlib edgecolor for unframed nodes

NODE_SIZE_RANGE = (3.0, 6.0)
EDGE_WIDTH_RANGE = (0.5, 2.0)
EDGE_COLOR = "#A8A8A8"   # gray66

# Rendering
LAYOUTS = ("kk", "spring")
DEFAULT_LAYOUT = "kk"
LAYOUT_SEED = 139
FIG_SIZE = (16 / 1.5, 12 / 1.5)   # 1600x1200 px at 150 dpi
FIG_DPI = 150
FIGURE_PREFIX = "network_figure_"
