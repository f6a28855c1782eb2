#!/usr/bin/env python3
"""Issue, deliver and purge server certificates for a batch of common names."""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from server_pki.lib.ca_manager import CAManager
from server_pki.lib.config import RemoteTarget, load_settings
from server_pki.lib.exceptions import EXIT_ROOT_PUBLISH_FAILED, ConfigError, FatalPKIError
from server_pki.lib.fingerprint import FingerprintReporter, format_report
from server_pki.lib.logging_config import LOGGER
from server_pki.lib.models import BatchResult, CertificateStatus, IssuanceOutcome
from server_pki.lib.openssl_backend import OpenSSLBackend
from server_pki.lib.pki_backend import CryptographyBackend
from server_pki.lib.prompts import ask_yes_no, read_new_passphrase, read_passphrase
from server_pki.lib.transfer import (
    RsyncTransport,
    Transport,
    deliver_and_purge,
    publish_root_certificate,
)

DEFAULT_SETTINGS = Path("server-pki.conf")


def issue_certificates(
    ca_manager: CAManager,
    common_names: Sequence[str],
    passphrase: bytes,
    target: RemoteTarget,
    transport: Transport,
    reporter: FingerprintReporter | None = None,
    publish_root: bool = True,
) -> BatchResult:
    """Run the issuance pipeline over common names, one at a time.

    1. Issue (key, CSR, signature) for the name
    2. Deliver the pair to the target and purge local copies
    3. After the batch, publish the root certificate to the target
    4. Collect fingerprints of installed certificates

    A transfer failure skips that name and the batch continues. Any fatal
    error stops the batch; names after it are not processed. A name listed
    more than once is issued once, at its first position.

    Args:
        ca_manager: Manager with a root-ready store
        common_names: Names in issuance order
        passphrase: Root key passphrase
        target: Remote destination
        transport: Channel used for delivery
        reporter: Fingerprint reporter for the final audit, if any
        publish_root: Copy the root certificate to the target after the batch

    Returns:
        BatchResult with per-name outcomes
    """
    result = BatchResult()
    unique_names = list(dict.fromkeys(common_names))
    if len(unique_names) != len(common_names):
        duplicates = sorted({cn for cn in common_names if common_names.count(cn) > 1})
        LOGGER.warning("Ignoring repeated common names: %s", ", ".join(duplicates))

    for common_name in unique_names:
        try:
            issued = ca_manager.issue(common_name, passphrase)
            result.certificates.append(issued)
            deliver_and_purge(issued, target, transport)
        except FatalPKIError as e:
            LOGGER.error("Aborting run at %s: %s", common_name, e)
            result.outcomes[common_name] = IssuanceOutcome.FATAL_ABORT
            result.fatal_error = e
            break

        if issued.status is CertificateStatus.PURGED_LOCAL:
            result.outcomes[common_name] = IssuanceOutcome.SIGNED_TRANSFERRED
        else:
            result.outcomes[common_name] = IssuanceOutcome.SKIPPED

    if publish_root and not result.aborted:
        result.root_published = publish_root_certificate(
            ca_manager.store.root_cert_path, target, transport
        )

    if reporter is not None:
        result.fingerprints = reporter.report(unique_names)

    return result


def format_summary(result: BatchResult) -> str:
    """Per-name outcomes followed by the fingerprint audit."""
    serials = {c.common_name: c.serial for c in result.certificates}
    lines = [
        f"{name:<20} {outcome.value:<20} {serials.get(name, '')}".rstrip()
        for name, outcome in result.outcomes.items()
    ]
    if result.fingerprints:
        lines.append("")
        lines.append("SHA1 fingerprints of the installed certificates:")
        lines.append(format_report(result.fingerprints))
    return "\n".join(lines)


def main() -> int:
    """Bootstrap gate, then issue and deliver certificates for every name.

    Returns:
        Exit code (0 for success, the fatal error's exit status otherwise)
    """
    parser = argparse.ArgumentParser(
        description="Generate, sign and deliver server certificates"
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=DEFAULT_SETTINGS,
        help=f"Settings file (default: {DEFAULT_SETTINGS})",
    )
    parser.add_argument(
        "--cn",
        action="append",
        dest="common_names",
        help="Common name to issue (repeatable; default: names derived from settings)",
    )
    parser.add_argument(
        "--work-dir",
        type=Path,
        help="Directory for transient artifacts (default: current directory)",
    )
    parser.add_argument(
        "--backend",
        choices=["cryptography", "openssl"],
        default="cryptography",
        help="PKI toolchain to use (default: cryptography)",
    )
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Generate a missing root certificate without asking",
    )
    parser.add_argument(
        "--no-publish-root",
        action="store_true",
        help="Do not copy the root certificate to the server",
    )
    args = parser.parse_args()

    try:
        overrides = {"work_dir": args.work_dir} if args.work_dir else {}
        settings = load_settings(args.settings, **overrides)
        backend = OpenSSLBackend() if args.backend == "openssl" else CryptographyBackend()
        ca_manager = CAManager(settings.config, backend=backend)
        common_names = args.common_names or list(settings.common_names)

        LOGGER.info("Configured remote: %s", settings.target.destination)
        confirm = (lambda _question: True) if args.yes else ask_yes_no
        ca_manager.bootstrap(confirm, read_new_passphrase)

        passphrase = read_passphrase()
        result = issue_certificates(
            ca_manager=ca_manager,
            common_names=common_names,
            passphrase=passphrase,
            target=settings.target,
            transport=RsyncTransport(),
            reporter=FingerprintReporter(backend, settings.config.installed_certs_dir),
            publish_root=not args.no_publish_root,
        )

        for line in format_summary(result).splitlines():
            LOGGER.info(line)

        if result.fatal_error is not None:
            return result.fatal_error.exit_code
        if result.skipped_names:
            LOGGER.warning("Skipped (re-run for these names): %s", result.skipped_names)
        if not args.no_publish_root and not result.root_published:
            return EXIT_ROOT_PUBLISH_FAILED
        return 0

    except ConfigError as e:
        LOGGER.error("Configuration error: %s", e)
        return e.exit_code
    except FatalPKIError as e:
        LOGGER.error("Certificate run aborted: %s", e)
        return e.exit_code
    except Exception as e:
        LOGGER.error("Certificate run failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
