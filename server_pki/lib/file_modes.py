"""File-mode and ownership enforcement for key and certificate artifacts."""

import os
import pwd
import stat
from pathlib import Path

from .exceptions import KeyPermissionError

OWNER_READ_ONLY = stat.S_IRUSR
WORLD_READABLE = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH


def write_private_bytes(path: Path, data: bytes) -> None:
    """Write secret material to a file that is never group/world accessible."""
    path.unlink(missing_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


def restrict_to_owner(path: Path) -> None:
    """Set key file to owner-read-only (0400).

    Raises:
        KeyPermissionError: If the mode cannot be applied
    """
    try:
        path.chmod(OWNER_READ_ONLY)
    except OSError as e:
        raise KeyPermissionError(f"cannot restrict permissions on {path}: {e}") from e


def make_world_readable(path: Path) -> None:
    """Set certificate file to read-only for everyone (0444)."""
    try:
        path.chmod(WORLD_READABLE)
    except OSError as e:
        raise KeyPermissionError(f"cannot set permissions on {path}: {e}") from e


def change_owner(path: Path, owner: str | None) -> None:
    """Hand the file to the privileged account (user and its primary group).

    A None owner leaves ownership untouched.
    """
    if owner is None:
        return
    try:
        entry = pwd.getpwnam(owner)
        os.chown(path, entry.pw_uid, entry.pw_gid)
    except (KeyError, OSError) as e:
        raise KeyPermissionError(f"cannot change ownership of {path} to {owner}: {e}") from e


def is_owner_read_only(path: Path) -> bool:
    return stat.S_IMODE(path.stat().st_mode) == OWNER_READ_ONLY


def is_world_readable(path: Path) -> bool:
    return stat.S_IMODE(path.stat().st_mode) & stat.S_IROTH != 0


def purge_local(*paths: Path) -> None:
    """Delete local copies of artifacts; missing files are fine.

    Raises:
        KeyPermissionError: If a file cannot be deleted
    """
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise KeyPermissionError(f"cannot purge local copy {path}: {e}") from e
