"""Server-side install of certificate/key pairs received from the CA host."""

import shutil
from pathlib import Path

from .file_modes import change_owner, make_world_readable, restrict_to_owner
from .logging_config import LOGGER


def install_certificates(
    source_dir: Path,
    certs_dir: Path,
    keys_dir: Path,
    owner: str | None = "root",
) -> list[str]:
    """Move received ``*.pem`` and ``*.key`` files into the system locations.

    Certificates become world-readable; keys become owner-read-only and are
    handed to the privileged account.

    Args:
        source_dir: Directory the artifacts were delivered to
        certs_dir: Trusted-certificate directory (e.g. /etc/ssl/certs)
        keys_dir: Private key directory (e.g. /etc/ssl/private)
        owner: Account that owns installed keys, or None to keep ownership

    Returns:
        Base names of the installed certificates, sorted
    """
    installed = []
    certs_dir.mkdir(parents=True, exist_ok=True)
    keys_dir.mkdir(parents=True, exist_ok=True)

    for key_path in sorted(source_dir.glob("*.key")):
        change_owner(key_path, owner)
        restrict_to_owner(key_path)
        destination = keys_dir / key_path.name
        destination.unlink(missing_ok=True)
        shutil.move(str(key_path), str(destination))

    for cert_path in sorted(source_dir.glob("*.pem")):
        destination = certs_dir / cert_path.name
        destination.unlink(missing_ok=True)
        shutil.move(str(cert_path), str(destination))
        make_world_readable(destination)
        installed.append(cert_path.stem)

    if installed:
        LOGGER.info("Installed certificates into %s: %s", certs_dir, ", ".join(installed))
    return installed
