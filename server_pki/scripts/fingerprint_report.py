#!/usr/bin/env python3
"""Print SHA-1 fingerprints of installed certificates for operator verification."""

import argparse
import sys
from pathlib import Path

from server_pki.lib.config import load_settings
from server_pki.lib.exceptions import ConfigError
from server_pki.lib.fingerprint import FingerprintReporter, format_report
from server_pki.lib.logging_config import LOGGER
from server_pki.lib.pki_backend import CryptographyBackend


def main() -> int:
    """Report fingerprints for the given or configured common names.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Fingerprint installed certificates")
    parser.add_argument(
        "common_names",
        nargs="*",
        help="Common names to report (default: names derived from settings)",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=Path("server-pki.conf"),
        help="Settings file, used when no names are given (default: server-pki.conf)",
    )
    parser.add_argument(
        "--certs-dir",
        type=Path,
        default=Path("/etc/ssl/certs"),
        help="Installed certificate directory (default: /etc/ssl/certs)",
    )
    args = parser.parse_args()

    try:
        common_names = args.common_names or list(
            load_settings(args.settings, write_template=False).common_names
        )
    except ConfigError as e:
        LOGGER.error("Configuration error: %s", e)
        return e.exit_code

    reporter = FingerprintReporter(CryptographyBackend(), args.certs_dir)
    print(format_report(reporter.report(common_names)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
