"""
Demo script: ingest delimited text files via the public API.

Usage:
    python scripts/run_ingest.py data/people.csv                 # first column is the id
    python scripts/run_ingest.py data/people.tsv --delimiter tab --id-column id

Each input file gets its own output subdirectory and ingest.yaml under
outputs/.  The manifest lists every emitted record with its status.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

OUTPUT_ROOT = Path("outputs")

_DELIMITER_NAMES = {"tab": "\t", "comma": ",", "pipe": "|", "semicolon": ";"}

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("run_ingest")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("inputs", nargs="+", help="Delimited text files to ingest")
    parser.add_argument("--delimiter", default=",", help="Delimiter or one of: tab, comma, pipe, semicolon")
    parser.add_argument("--id-column", default=None, help="Identifier column (default: first column)")
    parser.add_argument("--encoding", default=None, help="Source encoding (default: platform)")
    parser.add_argument("--format", default="parquet", choices=["csv", "parquet"])
    return parser.parse_args()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    import delimited_ingest
    from delimited_ingest.config import load_config, save_config

    args = _parse_args()
    delimiter = _DELIMITER_NAMES.get(args.delimiter, args.delimiter)

    for input_path in args.inputs:
        if not Path(input_path).exists():
            log.warning("SKIP  %s  (file not found)", input_path)
            continue

        name = Path(input_path).stem
        output_dir = str(OUTPUT_ROOT / name)
        config_path = str(OUTPUT_ROOT / f"{name}.yaml")

        log.info("=" * 70)
        log.info("Processing: %s", input_path)
        log.info("  output_dir  : %s", output_dir)
        log.info("  config_path : %s", config_path)
        log.info("=" * 70)

        delimited_ingest.init(
            input_path,
            output_dir=output_dir,
            config_path=config_path,
            delimiter=delimiter,
            id_column=args.id_column,
            encoding=args.encoding,
            run_immediately=False,
        )
        config = load_config(config_path)
        config.output.output_format = args.format
        save_config(config, config_path)

        result = delimited_ingest.ingest(config_path)
        log.info(
            "  %d records: %d valid, %d invalid",
            result.total, result.valid, result.invalid,
        )
        log.info("Done: %s\n", name)

    log.info("All files processed.")


if __name__ == "__main__":
    main()
