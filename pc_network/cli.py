import argparse
import logging
import sys

from pc_network.config import DEFAULT_LAYOUT, INPUT_CSV, LAYOUTS, MIN_SHARED_PATIENTS, OUT_DIR, SQLITE_TABLE
from pc_network.errors import AlignmentError, DataIntegrityError
from pc_network.pipeline import run_pipeline

logger = logging.getLogger("pc_network")


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        description="Build a shared-patient provider network and plot one PC subnetwork per HRR"
    )
    ap.add_argument("input", nargs="?", default=str(INPUT_CSV),
                    help="Encounter CSV or SQLite database (default: %(default)s)")
    ap.add_argument("--output-dir", default=str(OUT_DIR), help="Directory for figures and exports")
    ap.add_argument("--min-shared-patients", type=int, default=MIN_SHARED_PATIENTS,
                    help="Drop edges sharing fewer patients than this (privacy suppression)")
    ap.add_argument("--layout", choices=LAYOUTS, default=DEFAULT_LAYOUT, help="Graph layout algorithm")
    ap.add_argument("--table", default=SQLITE_TABLE, help="Table name when INPUT is a SQLite database")
    ap.add_argument("--no-render", action="store_true", help="Only build and export the network")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = ap.parse_args(argv)
    if args.min_shared_patients < 1:
        ap.error("--min-shared-patients must be at least 1")
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    try:
        results = run_pipeline(
            input_path=args.input,
            output_dir=args.output_dir,
            min_shared_patients=args.min_shared_patients,
            layout=args.layout,
            table=args.table,
            render=not args.no_render,
        )
    except (DataIntegrityError, AlignmentError, FileNotFoundError) as e:
        logger.error(f"Error in main execution: {e}", exc_info=True)
        return 1

    G = results["graph"]
    print(f"Providers: {G.number_of_nodes()}  Edges: {G.number_of_edges()}")
    print(f"Figures written: {len(results['figures'])}  Failed HRRs: {len(results['failed'])}")
    print(f"All outputs saved to '{args.output_dir}'")
    return 1 if results["failed"] else 0


if __name__ == "__main__":
    sys.exit(main())
