#!/usr/bin/env python3
"""Install delivered certificates and keys on the server."""

import argparse
import sys
from pathlib import Path

from server_pki.lib.exceptions import FatalPKIError
from server_pki.lib.installer import install_certificates
from server_pki.lib.logging_config import LOGGER


def main() -> int:
    """Move received artifacts into the system certificate locations.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Install delivered certificates")
    parser.add_argument(
        "--source-dir",
        type=Path,
        default=Path.home(),
        help="Directory the certificates were delivered to (default: home directory)",
    )
    parser.add_argument(
        "--certs-dir",
        type=Path,
        default=Path("/etc/ssl/certs"),
        help="Certificate directory (default: /etc/ssl/certs)",
    )
    parser.add_argument(
        "--keys-dir",
        type=Path,
        default=Path("/etc/ssl/private"),
        help="Private key directory (default: /etc/ssl/private)",
    )
    parser.add_argument(
        "--owner",
        default="root",
        help="Account that owns installed keys (default: root)",
    )
    args = parser.parse_args()

    try:
        LOGGER.info("Looking for delivered certificates in %s ...", args.source_dir)
        installed = install_certificates(
            source_dir=args.source_dir,
            certs_dir=args.certs_dir,
            keys_dir=args.keys_dir,
            owner=args.owner,
        )
        if not installed:
            LOGGER.warning("No certificates found in %s", args.source_dir)
        return 0

    except FatalPKIError as e:
        LOGGER.error("Install failed: %s", e)
        return e.exit_code
    except Exception as e:
        LOGGER.error("Install failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
