"""
권한 모듈 - SSH 디렉토리와 키/설정 파일에 필요한 권한 비트 적용

OpenSSH 요구 권한:
- ~/.ssh: 700 (소유자만 읽기/쓰기/실행)
- 개인키, config: 600 (소유자만 읽기/쓰기)
- 공개키: 644 (소유자 읽기/쓰기, 나머지 읽기)

chmod 실패(POSIX 권한이 없는 플랫폼 등)는 경고 로그만 남기고 계속 진행
"""

import logging
from pathlib import Path


logger = logging.getLogger(__name__)

DIRECTORY_MODE = 0o700
PRIVATE_KEY_MODE = 0o600
PUBLIC_KEY_MODE = 0o644
CONFIG_FILE_MODE = 0o600


def _apply_mode(path: Path, mode: int) -> bool:
    try:
        Path(path).chmod(mode)
        return True
    except (OSError, NotImplementedError) as e:
        logger.warning("권한 변경 실패 (%s -> %o): %s", path, mode, e)
        return False


def secure_directory(path: Path) -> bool:
    """
    디렉토리가 없으면 만들고 700 권한 적용

    디렉토리 생성 실패는 OSError로 그대로 전달됨 (이후 작업 불가)

    Returns:
        권한 적용 성공 여부
    """
    path = Path(path)
    path.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
    return _apply_mode(path, DIRECTORY_MODE)


def secure_private_key(path: Path) -> bool:
    return _apply_mode(path, PRIVATE_KEY_MODE)


def secure_public_key(path: Path) -> bool:
    return _apply_mode(path, PUBLIC_KEY_MODE)


def secure_config_file(path: Path) -> bool:
    return _apply_mode(path, CONFIG_FILE_MODE)
