#!/usr/bin/env python3
"""Create a PEM chain bundle (leaf first, root last) from issued certificates."""

import argparse
import sys
from pathlib import Path

from ca_tool.lib.ca_manager import CAManager
from ca_tool.lib.config import CAConfig
from ca_tool.lib.logging_config import LOGGER


def main(argv: list[str] | None = None) -> int:
    """Create chain bundle from certificate files.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(
        prog="ca-chain",
        description="Create PEM chain bundle (leaf first, root last)",
    )
    parser.add_argument(
        "certificates",
        type=Path,
        nargs="+",
        help="Certificate PEM files in issuance order, e.g. leaf intermediate root",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Chain bundle output path (e.g., chain.pem)",
    )
    args = parser.parse_args(argv)

    try:
        ca_manager = CAManager(CAConfig.from_env())

        LOGGER.info("Creating chain bundle...")
        result = ca_manager.create_chain(args.certificates, args.output)

        LOGGER.info("Chain created: %s (%d certificates)", result.chain_path, result.certificate_count)
        return 0

    except FileNotFoundError as e:
        LOGGER.error("Certificate not found: %s", e)
        return 1
    except Exception as e:
        LOGGER.error("Chain creation failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
