#!/usr/bin/env python3
"""Bootstrap the CA store and its self-signed root certificate."""

import argparse
import sys
from pathlib import Path

from server_pki.lib.ca_manager import CAManager
from server_pki.lib.config import load_settings
from server_pki.lib.exceptions import ConfigError, FatalPKIError
from server_pki.lib.logging_config import LOGGER
from server_pki.lib.openssl_backend import OpenSSLBackend
from server_pki.lib.pki_backend import CryptographyBackend
from server_pki.lib.prompts import ask_yes_no, read_new_passphrase

DEFAULT_SETTINGS = Path("server-pki.conf")


def main() -> int:
    """Initialize the CA store and ensure a root certificate exists.

    Returns:
        Exit code (0 for success, the error's exit status otherwise)
    """
    parser = argparse.ArgumentParser(description="Bootstrap CA store and root certificate")
    parser.add_argument(
        "--settings",
        type=Path,
        default=DEFAULT_SETTINGS,
        help=f"Settings file (default: {DEFAULT_SETTINGS})",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Generate a missing root certificate without asking",
    )
    parser.add_argument(
        "--backend",
        choices=["cryptography", "openssl"],
        default="cryptography",
        help="PKI toolchain to use (default: cryptography)",
    )
    args = parser.parse_args()

    try:
        settings = load_settings(args.settings)
        backend = OpenSSLBackend() if args.backend == "openssl" else CryptographyBackend()
        ca_manager = CAManager(settings.config, backend=backend)

        LOGGER.info("Preparing certificate authority in %s ...", settings.config.store_root)
        confirm = (lambda _question: True) if args.yes else ask_yes_no
        result = ca_manager.bootstrap(confirm, read_new_passphrase)

        LOGGER.info("Root certificate: %s", result.root_cert_path)
        LOGGER.info("Root key: %s", result.root_key_path)
        LOGGER.info("Bootstrap complete. Next: run issue_certificates.py")
        return 0

    except ConfigError as e:
        LOGGER.error("Configuration error: %s", e)
        return e.exit_code
    except FatalPKIError as e:
        LOGGER.error("Bootstrap failed: %s", e)
        return e.exit_code
    except Exception as e:
        LOGGER.error("Bootstrap failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
