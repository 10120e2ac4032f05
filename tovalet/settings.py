"""
설정 모듈 - SSH 디렉토리 경로와 로그 레벨을 환경에서 읽어 한곳에 모음

구현 방식:
- 경로는 전역 상수가 아니라 SSHPaths 객체로 각 컴포넌트에 주입
- 테스트에서는 임시 디렉토리를 가리키는 SSHPaths를 만들어 사용

환경 변수:
- TOVALET_SSH_DIR: SSH 디렉토리 (기본: ~/.ssh)
- TOVALET_LOG_LEVEL: 로그 레벨 (기본: WARNING)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


SSH_DIR_ENV = "TOVALET_SSH_DIR"
LOG_LEVEL_ENV = "TOVALET_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class SSHPaths:
    """SSH 관련 파일 경로 묶음"""

    home: Path              # 사용자 홈 디렉토리 (~ 확장에 사용)
    ssh_dir: Path           # 키와 config가 위치하는 디렉토리

    @property
    def config_file(self) -> Path:
        return self.ssh_dir / "config"

    @property
    def backup_file(self) -> Path:
        """config 수정 직전 스냅샷 경로 (config.bak)"""
        return self.config_file.with_name(self.config_file.name + ".bak")

    def default_key_path(self, algorithm: str) -> Path:
        """알고리즘별 기본 개인키 경로 (id_ed25519, id_rsa)"""
        return self.ssh_dir / f"id_{algorithm}"

    def expand(self, value: str) -> Path:
        """
        앞쪽 ~ 를 홈 디렉토리로 치환

        Args:
            value: 사용자가 입력했거나 config에 적힌 경로 문자열
        """
        if value.startswith("~"):
            return Path(str(self.home) + value[1:])
        return Path(value)

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> 'SSHPaths':
        """환경 변수에서 경로 생성"""
        if environ is None:
            environ = os.environ

        home = Path.home()
        override = environ.get(SSH_DIR_ENV, "").strip()
        ssh_dir = Path(override).expanduser() if override else home / ".ssh"
        return cls(home=home, ssh_dir=ssh_dir)


def log_level(environ: Optional[Mapping[str, str]] = None) -> int:
    """
    TOVALET_LOG_LEVEL 값을 logging 레벨로 변환

    알 수 없는 이름이면 WARNING 사용
    """
    if environ is None:
        environ = os.environ

    name = environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    return logging.WARNING
