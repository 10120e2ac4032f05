"""
Key locator and public key inspection tests.
"""

import base64
import hashlib
from pathlib import Path

import pytest

from conftest import ED25519_BLOB, PUBLIC_KEY_LINE, write_key_pair
from tovalet.keys import (
    KeyPair,
    default_comment,
    find_existing_key,
    normalize_algorithm,
    public_key_path_for,
    read_public_key_info,
)


class TestFindExistingKey:
    def test_no_keys(self, ssh_paths):
        assert find_existing_key(ssh_paths) is None

    def test_rsa_only(self, ssh_paths):
        write_key_pair(ssh_paths.ssh_dir / "id_rsa")

        assert find_existing_key(ssh_paths) == ssh_paths.ssh_dir / "id_rsa"

    def test_prefers_ed25519(self, ssh_paths):
        write_key_pair(ssh_paths.ssh_dir / "id_rsa")
        write_key_pair(ssh_paths.ssh_dir / "id_ed25519")

        assert find_existing_key(ssh_paths) == ssh_paths.ssh_dir / "id_ed25519"

    def test_ignores_directories(self, ssh_paths):
        (ssh_paths.ssh_dir / "id_ed25519").mkdir(parents=True)
        write_key_pair(ssh_paths.ssh_dir / "id_rsa")

        assert find_existing_key(ssh_paths) == ssh_paths.ssh_dir / "id_rsa"

    def test_reflects_filesystem_changes(self, ssh_paths):
        assert find_existing_key(ssh_paths) is None

        write_key_pair(ssh_paths.ssh_dir / "id_ed25519")

        assert find_existing_key(ssh_paths) == ssh_paths.ssh_dir / "id_ed25519"


class TestNormalizeAlgorithm:
    @pytest.mark.parametrize("value, expected", [
        ("ed25519", ("ed25519", True)),
        ("ED25519", ("ed25519", True)),
        ("Rsa", ("rsa", True)),
        (" rsa ", ("rsa", True)),
        ("dsa", ("ed25519", False)),
        ("ecdsa", ("ed25519", False)),
        ("", ("ed25519", False)),
    ])
    def test_normalization(self, value, expected):
        assert normalize_algorithm(value) == expected


class TestKeyPair:
    def test_public_key_path(self):
        key = KeyPair(algorithm="rsa", private_key_path=Path("/keys/id_rsa"))

        assert key.public_key_path == Path("/keys/id_rsa.pub")

    def test_public_key_path_keeps_dots(self):
        assert public_key_path_for(Path("/keys/deploy.prod")) == Path("/keys/deploy.prod.pub")

    def test_exists(self, ssh_paths):
        key = KeyPair(algorithm="ed25519", private_key_path=ssh_paths.ssh_dir / "id_ed25519")
        assert key.exists() is False

        write_key_pair(key.private_key_path)

        assert key.exists() is True


class TestReadPublicKeyInfo:
    def test_parses_type_comment_and_fingerprint(self, ssh_paths):
        public_key = write_key_pair(ssh_paths.ssh_dir / "id_ed25519")

        info = read_public_key_info(public_key)

        expected = base64.b64encode(hashlib.sha256(ED25519_BLOB).digest()).decode().rstrip("=")
        assert info.key_type == "ssh-ed25519"
        assert info.comment == "me@box"
        assert info.fingerprint == "SHA256:" + expected

    def test_rejects_single_field(self, tmp_path):
        path = tmp_path / "bad.pub"
        path.write_text("ssh-ed25519\n")

        with pytest.raises(ValueError):
            read_public_key_info(path)

    def test_rejects_mismatched_type(self, tmp_path):
        path = tmp_path / "bad.pub"
        path.write_text(PUBLIC_KEY_LINE.replace("ssh-ed25519", "ssh-rsa", 1) + "\n")

        with pytest.raises(ValueError):
            read_public_key_info(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            read_public_key_info(tmp_path / "missing.pub")


def test_default_comment_has_user_and_host():
    user, _, host = default_comment().partition("@")

    assert user
    assert host
