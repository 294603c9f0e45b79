import csv
import sys
import logging
from decimal import InvalidOperation
from typing import List, Optional

from csv_io import InputFileError, validate_input_path, write_accounts
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: toy-ledger <input.csv>", file=sys.stderr)
        return 1

    filepath = args[0]
    try:
        validate_input_path(filepath)
        accounts = PaymentsEngine().process_file(filepath)
        write_accounts(accounts, sys.stdout)
        sys.stdout.flush()
    except (InputFileError, OSError, csv.Error, InvalidOperation) as e:
        logger.error(f"Error executing run: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
