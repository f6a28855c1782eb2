"""Secure delivery of signed artifacts and purge of local copies."""

import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from .config import RemoteTarget
from .exceptions import TransferError
from .file_modes import purge_local
from .logging_config import LOGGER, certificate_context
from .models import CertificateStatus, IssuedCertificate


class Transport(Protocol):
    """Authenticated, encrypted channel to a remote host."""

    def push(self, paths: Sequence[Path], target: RemoteTarget) -> None:
        """Copy files into the principal's home directory on the target.

        Raises:
            TransferError: If the copy did not complete
        """
        ...


class RsyncTransport:
    """Pushes files with ``rsync`` over SSH; the exit status decides success."""

    def __init__(self, executable: str = "rsync", remote_shell: str = "ssh") -> None:
        self.executable = executable
        self.remote_shell = remote_shell

    def push(self, paths: Sequence[Path], target: RemoteTarget) -> None:
        cmd = [
            self.executable,
            "-v",
            "-e", self.remote_shell,
            *(str(p) for p in paths),
            f"{target.destination}:",
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise TransferError(f"cannot run {self.executable}: {e}") from e
        if result.returncode != 0:
            raise TransferError(
                f"{self.executable} exit code {result.returncode}: {result.stderr.strip()}"
            )


def deliver_and_purge(
    issued: IssuedCertificate, target: RemoteTarget, transport: Transport
) -> IssuedCertificate:
    """Push one certificate/key pair to the target, then delete both local copies.

    The local copies are deleted whether or not the transfer succeeded. A
    failed transfer marks the certificate SKIPPED.

    Args:
        issued: Certificate in SIGNED state
        target: Remote destination
        transport: Channel used for the push

    Returns:
        The same certificate, now PURGED_LOCAL or SKIPPED

    Raises:
        KeyPermissionError: If a local copy cannot be deleted
    """
    context = certificate_context(issued.common_name, issued.serial)
    LOGGER.info("Copying %s to %s ...", issued.common_name, target.destination, extra=context)
    try:
        transport.push([issued.cert_path, issued.key_path], target)
    except TransferError as e:
        LOGGER.error(
            "Transfer of %s failed, skipping: %s", issued.common_name, e, extra=context
        )
        issued.status = CertificateStatus.SKIPPED
    else:
        issued.status = CertificateStatus.TRANSFERRED
    finally:
        purge_local(issued.key_path, issued.cert_path)

    if issued.status is CertificateStatus.TRANSFERRED:
        issued.status = CertificateStatus.PURGED_LOCAL
        LOGGER.info("Delivered %s and removed local copies", issued.common_name, extra=context)
    return issued


def publish_root_certificate(
    root_cert_path: Path, target: RemoteTarget, transport: Transport
) -> bool:
    """Copy the (public) root certificate to the target. Never purged.

    Returns:
        True if the copy succeeded
    """
    LOGGER.info("Copying root certificate to %s ...", target.destination)
    try:
        transport.push([root_cert_path], target)
    except TransferError as e:
        LOGGER.error("Copying root certificate failed: %s", e)
        return False
    return True
