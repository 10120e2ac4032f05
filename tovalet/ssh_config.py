"""
SSH config 모듈 - ~/.ssh/config 읽기/검색/추가/백업

데이터 구조:
- config 파일은 원문 줄 목록으로 취급 (Host, Match, IdentityFile만 해석)
- 새 항목은 항상 파일 끝에 블록으로 추가 (기존 블록은 수정하지 않음)

추가되는 블록 예시:
    # Added by ToValet
    Host myserver
      HostName 192.168.1.50
      User root
      IdentityFile ~/.ssh/id_ed25519
      Port 2222            <- 22가 아닐 때만

중복 별칭:
- 같은 Host 별칭이 이미 있어도 그대로 추가함
- OpenSSH는 먼저 나온 블록을 사용하므로 검색도 첫 블록 기준
"""

import enum
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import paramiko

from . import permissions
from .settings import SSHPaths


logger = logging.getLogger(__name__)

DEFAULT_PORT = 22
TOOL_NAME = "ToValet"

# 블록 경계가 되는 키워드
BLOCK_KEYWORDS = ("host", "match")


class ScanState(enum.Enum):
    OUTSIDE_BLOCK = "outside"
    INSIDE_BLOCK = "inside"


@dataclass
class HostEntry:
    """config에 추가할 Host 블록 정보"""

    alias: str                          # Host 별칭
    hostname: str                       # IP 주소 또는 호스트명
    user: str                           # SSH 사용자 이름
    identity_file: str                  # 개인키 경로 (입력한 그대로 기록)
    port: int = DEFAULT_PORT

    def __post_init__(self):
        if not self.alias or len(self.alias.split()) != 1:
            raise ValueError(f"잘못된 Host 별칭: {self.alias!r}")
        if not self.hostname:
            raise ValueError("호스트명이 비어 있습니다.")
        if not self.user:
            raise ValueError("사용자 이름이 비어 있습니다.")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"포트 범위 초과: {self.port}")

    @property
    def default_port(self) -> bool:
        return self.port == DEFAULT_PORT


@dataclass
class HostSummary:
    """config 보기 화면의 Host 목록 한 줄"""
    alias: str
    hostname: str
    user: str
    port: str
    identity_file: str


def normalize_port(value) -> tuple[int, bool]:
    """
    포트 입력 정규화

    Returns:
        (포트, 유효 여부) - 숫자가 아니거나 1~65535 밖이면 22
    """
    text = str(value).strip()
    if text.isascii() and text.isdigit():
        port = int(text)
        if 1 <= port <= 65535:
            return port, True
    return DEFAULT_PORT, False


def _split_directive(line: str) -> tuple[str, str]:
    """
    "Keyword value" 또는 "Keyword=value" 를 (소문자 키워드, 값)으로 분리

    주석/빈 줄이면 ("", "")
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return "", ""

    for i, ch in enumerate(stripped):
        if ch.isspace() or ch == "=":
            keyword = stripped[:i]
            rest = stripped[i:].lstrip()
            if rest.startswith("="):
                rest = rest[1:].lstrip()
            return keyword.lower(), rest.strip()
    return stripped.lower(), ""


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


class ConfigBlockStore:
    """SSH config 파일의 Host 블록 관리 클래스"""

    def __init__(self, paths: SSHPaths, tool_name: str = TOOL_NAME):
        """
        Args:
            paths: SSH 경로 설정 (config 파일 위치, ~ 확장용 홈)
            tool_name: 블록 머리 주석에 기록할 이름
        """
        self.paths = paths
        self.tool_name = tool_name

    @property
    def config_file(self) -> Path:
        return self.paths.config_file

    @property
    def backup_file(self) -> Path:
        return self.paths.backup_file

    def _read_lines(self) -> list[str]:
        if not self.config_file.is_file():
            return []
        with open(self.config_file, 'r', encoding='utf-8', errors='replace') as f:
            return f.read().splitlines()

    def _scan_block(self, alias: str) -> Iterator[tuple[str, str]]:
        """
        alias의 첫 Host 블록 안 지시어를 (키워드, 값)으로 반환

        상태 전이:
        - OUTSIDE_BLOCK: "Host <alias>" 를 만나면 INSIDE_BLOCK
        - INSIDE_BLOCK: 다음 Host/Match 줄에서 종료 (첫 블록만 검사)
        """
        state = ScanState.OUTSIDE_BLOCK

        for line in self._read_lines():
            keyword, value = _split_directive(line)
            if not keyword:
                continue

            if state is ScanState.OUTSIDE_BLOCK:
                if keyword == "host" and value.split()[:1] == [alias]:
                    state = ScanState.INSIDE_BLOCK
                continue

            if keyword in BLOCK_KEYWORDS:
                return
            yield keyword, value

    def has_host(self, alias: str) -> bool:
        """alias로 시작하는 Host 줄 존재 여부"""
        for line in self._read_lines():
            keyword, value = _split_directive(line)
            if keyword == "host" and value.split()[:1] == [alias]:
                return True
        return False

    def find_identity_file(self, alias: str) -> Optional[Path]:
        """
        Host 블록의 IdentityFile 조회

        Args:
            alias: Host 별칭 (첫 토큰과 정확히 일치해야 함)

        Returns:
            ~ 를 확장한 개인키 경로 (별칭이나 IdentityFile이 없으면 None)
        """
        for keyword, value in self._scan_block(alias):
            if keyword == "identityfile" and value:
                return self.paths.expand(_unquote(value))
        return None

    def render_block(self, entry: HostEntry) -> str:
        """정해진 형식의 Host 블록 텍스트 생성"""
        lines = [
            f"# Added by {self.tool_name}",
            f"Host {entry.alias}",
            f"  HostName {entry.hostname}",
            f"  User {entry.user}",
            f"  IdentityFile {entry.identity_file}",
        ]
        if not entry.default_port:
            lines.append(f"  Port {entry.port}")
        lines.append("")
        return "\n".join(lines) + "\n"

    def _backup(self) -> Optional[Path]:
        """
        config 파일을 .bak으로 복사 (실패해도 계속 진행)

        Returns:
            백업 경로 (파일이 없거나 실패하면 None)
        """
        if not self.config_file.exists():
            return None
        try:
            shutil.copy2(self.config_file, self.backup_file)
        except OSError as e:
            logger.warning("config 백업 실패 (%s): %s", self.backup_file, e)
            return None
        return self.backup_file

    def append_host_block(self, entry: HostEntry) -> Optional[Path]:
        """
        Host 블록을 config 파일 끝에 추가

        순서: 디렉토리 생성(700) -> 백업 -> 추가 -> 권한(600)

        Returns:
            백업 파일 경로 (백업하지 않았으면 None)

        Raises:
            OSError: config 파일을 쓸 수 없는 경우
        """
        permissions.secure_directory(self.config_file.parent)
        backup = self._backup()

        block = self.render_block(entry)
        with open(self.config_file, 'a+b') as f:
            # 기존 내용이 줄바꿈 없이 끝나면 새 블록이 붙지 않도록 한 줄 띄움
            f.seek(0, 2)
            if f.tell() > 0:
                f.seek(-1, 2)
                if f.read(1) != b"\n":
                    f.write(b"\n")
            f.write(block.encode('utf-8'))

        permissions.secure_config_file(self.config_file)
        logger.info("Host 블록 추가: %s -> %s", entry.alias, self.config_file)
        return backup

    def view_config(self) -> Optional[str]:
        """
        config 전체 내용

        Returns:
            파일 내용 (파일이 없으면 None)
        """
        if not self.config_file.is_file():
            return None
        with open(self.config_file, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    def list_hosts(self) -> list[HostSummary]:
        """
        config에 정의된 Host 목록 (와일드카드 패턴 제외)

        paramiko의 SSHConfig로 각 별칭에 실제 적용되는 값을 계산
        """
        if not self.config_file.is_file():
            return []

        try:
            config = paramiko.SSHConfig.from_path(str(self.config_file))
        except Exception as e:
            logger.warning("config 파싱 실패 (%s): %s", self.config_file, e)
            return []

        hosts = []
        for alias in sorted(config.get_hostnames()):
            if any(ch in alias for ch in "*?!"):
                continue
            try:
                options = config.lookup(alias)
            except Exception as e:
                logger.warning("Host '%s' 조회 실패: %s", alias, e)
                continue
            identity = options.get("identityfile") or [""]
            hosts.append(HostSummary(
                alias=alias,
                hostname=options.get("hostname", alias),
                user=options.get("user", ""),
                port=str(options.get("port", DEFAULT_PORT)),
                identity_file=identity[0],
            ))
        return hosts
