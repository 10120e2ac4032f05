"""
키 모듈 - 기존 SSH 키 탐색 및 공개키 정보 표시

키 생성 자체는 ssh-keygen이 담당하고 (tools.py),
이 모듈은 파일 시스템에 있는 키를 찾고 보여주는 역할만 함.

공개키 파싱:
- paramiko의 PublicBlob으로 "<타입> <base64> <주석>" 형식 검증
- 지문은 ssh-keygen -l 과 같은 SHA256 형식
"""

import base64
import getpass
import hashlib
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from paramiko import PublicBlob

from .settings import SSHPaths


KEY_ALGORITHMS = ("ed25519", "rsa")
DEFAULT_ALGORITHM = "ed25519"

# 탐색 우선순위: ed25519 > rsa
KEY_CANDIDATES = ("id_ed25519", "id_rsa")


@dataclass
class KeyPair:
    """SSH 키 쌍 정보 (파일 시스템이 유일한 원본)"""

    algorithm: str
    private_key_path: Path
    comment: str = ""

    @property
    def public_key_path(self) -> Path:
        return public_key_path_for(self.private_key_path)

    def exists(self) -> bool:
        return self.private_key_path.is_file()


@dataclass
class PublicKeyInfo:
    """공개키 표시용 정보"""
    key_type: str
    comment: str
    fingerprint: str        # SHA256:xxxx


def public_key_path_for(private_key_path: Path) -> Path:
    """개인키 경로 + .pub"""
    private_key_path = Path(private_key_path)
    return private_key_path.with_name(private_key_path.name + ".pub")


def find_existing_key(paths: SSHPaths) -> Optional[Path]:
    """
    SSH 디렉토리에서 기존 개인키 탐색

    Returns:
        처음 발견된 개인키 경로 (없으면 None)
    """
    for name in KEY_CANDIDATES:
        candidate = paths.ssh_dir / name
        if candidate.is_file():
            return candidate
    return None


def normalize_algorithm(value: str) -> tuple[str, bool]:
    """
    키 알고리즘 입력 정규화 (대소문자 무시)

    Returns:
        (알고리즘, 인식 여부) - 인식 못 하면 ed25519
    """
    algorithm = (value or "").strip().lower()
    if algorithm in KEY_ALGORITHMS:
        return algorithm, True
    return DEFAULT_ALGORITHM, False


def default_comment() -> str:
    """키 주석 기본값: 사용자@호스트"""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "user"
    return f"{user}@{socket.gethostname() or 'host'}"


def read_public_key_info(path: Path) -> PublicKeyInfo:
    """
    공개키 파일 파싱

    Raises:
        ValueError: 공개키 형식이 아닌 경우
        OSError: 파일을 읽을 수 없는 경우
    """
    blob = PublicBlob.from_file(str(path))
    digest = hashlib.sha256(blob.key_blob).digest()
    fingerprint = "SHA256:" + base64.b64encode(digest).decode().rstrip("=")
    return PublicKeyInfo(
        key_type=blob.key_type,
        comment=blob.comment or "",
        fingerprint=fingerprint,
    )
