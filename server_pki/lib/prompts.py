"""Terminal prompts used by the command-line scripts."""

import getpass

from .exceptions import EXIT_ROOT_GENERATION_FAILED, FatalBootstrapError


def ask_yes_no(question: str, default: bool = True) -> bool:
    """Ask a yes/no question; an empty answer picks the default."""
    suffix = "[Y/n]" if default else "[y/N]"
    while True:
        answer = input(f"{question} {suffix} ").strip().lower()
        if not answer:
            return default
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False


def read_passphrase(prompt: str = "Please enter the passphrase for the CA's private key: ") -> bytes:
    """Read the root key passphrase without echo."""
    return getpass.getpass(prompt).encode()


def read_new_passphrase() -> bytes:
    """Read a new root key passphrase twice.

    Raises:
        FatalBootstrapError: If the two entries differ
    """
    first = read_passphrase("Enter a passphrase for the new root key: ")
    second = read_passphrase("Verify the passphrase: ")
    if first != second:
        raise FatalBootstrapError("passphrases do not match", EXIT_ROOT_GENERATION_FAILED)
    return first
