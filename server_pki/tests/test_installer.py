"""Tests for the server-side certificate installer."""

from pathlib import Path
from unittest.mock import patch

from server_pki.lib.file_modes import is_owner_read_only, is_world_readable
from server_pki.lib.installer import install_certificates


def test_installs_pairs(tmp_path: Path) -> None:
    source = tmp_path / "home"
    source.mkdir()
    (source / "mail.example.org.pem").write_text("cert")
    (source / "mail.example.org.key").write_text("key")
    (source / "wildcard.example.org.pem").write_text("cert")
    (source / "wildcard.example.org.key").write_text("key")
    (source / "notes.txt").write_text("untouched")
    certs_dir = tmp_path / "etc" / "ssl" / "certs"
    keys_dir = tmp_path / "etc" / "ssl" / "private"

    installed = install_certificates(source, certs_dir, keys_dir, owner=None)

    assert installed == ["mail.example.org", "wildcard.example.org"]
    assert is_world_readable(certs_dir / "mail.example.org.pem")
    assert is_owner_read_only(keys_dir / "mail.example.org.key")
    assert sorted(p.name for p in source.iterdir()) == ["notes.txt"]


def test_replaces_previous_install(tmp_path: Path) -> None:
    source = tmp_path / "home"
    source.mkdir()
    certs_dir = tmp_path / "certs"
    keys_dir = tmp_path / "private"
    certs_dir.mkdir()
    keys_dir.mkdir()
    old_key = keys_dir / "example.org.key"
    old_key.write_text("old")
    old_key.chmod(0o400)
    (source / "example.org.key").write_text("new")
    (source / "example.org.pem").write_text("cert")

    install_certificates(source, certs_dir, keys_dir, owner=None)

    assert old_key.read_text() == "new"


def test_hands_keys_to_owner(tmp_path: Path) -> None:
    source = tmp_path / "home"
    source.mkdir()
    (source / "a.key").write_text("key")

    with patch("server_pki.lib.installer.change_owner") as mock_chown:
        installed = install_certificates(source, tmp_path / "certs", tmp_path / "private")

    mock_chown.assert_called_once_with(source / "a.key", "root")
    assert installed == []
