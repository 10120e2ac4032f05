#!/usr/bin/env python3
"""
ToValet 실행 파일 빌드 (PyInstaller --onedir)

ssh-keygen/ssh-copy-id만 있고 Python 환경이 없는 머신에서도
ToValet 메뉴를 쓸 수 있도록 rich, paramiko를 함께 묶습니다.

사용법:
    pip install -e ".[build]"
    python build.py

결과물:
    dist/tovalet/tovalet (Linux, macOS)
    dist/tovalet/tovalet.exe (Windows)
"""

import os
import sys
import shutil
import subprocess
from pathlib import Path


APP_NAME = "tovalet"

HIDDEN_IMPORTS = [
    # paramiko (SSH config 파싱, 공개키 파싱)
    'paramiko',
    'paramiko.config',
    'paramiko.pkey',

    # bcrypt, nacl (paramiko 의존성)
    'bcrypt',
    'nacl',
    'nacl.bindings',

    # rich TUI 라이브러리
    'rich',
    'rich.console',
    'rich.table',
    'rich.panel',
    'rich.prompt',
    'rich.markup',
    'rich.box',
]


def check_pyinstaller():
    """PyInstaller 설치 확인"""
    try:
        import PyInstaller
        print(f"PyInstaller 버전: {PyInstaller.__version__}")
        return True
    except ImportError:
        print("PyInstaller가 설치되어 있지 않습니다.")
        print("설치: pip install pyinstaller")
        return False


def build_command(entry_point: str = 'run.py') -> list[str]:
    """PyInstaller 명령 생성"""
    cmd = [
        sys.executable, '-m', 'PyInstaller',
        '--onedir',                     # 폴더 형태 (더 안정적)
        '--name', APP_NAME,             # 출력 이름
        '--clean',                      # 캐시 정리 후 빌드
        '--noconfirm',                  # 확인 없이 덮어쓰기
    ]
    for module in HIDDEN_IMPORTS:
        cmd.extend(['--hidden-import', module])

    # 진입점
    cmd.append(entry_point)
    return cmd


def output_path(script_dir: Path) -> Path:
    """빌드 결과 실행 파일 경로"""
    name = f'{APP_NAME}.exe' if sys.platform == 'win32' else APP_NAME
    return script_dir / 'dist' / APP_NAME / name


def build():
    """빌드 실행"""
    if not check_pyinstaller():
        sys.exit(1)

    # 현재 디렉토리 확인
    script_dir = Path(__file__).parent.absolute()
    os.chdir(script_dir)

    print(f"빌드 디렉토리: {script_dir}")

    # 이전 빌드 결과물 정리
    for folder in ['build', 'dist']:
        if Path(folder).exists():
            print(f"이전 {folder} 폴더 삭제...")
            shutil.rmtree(folder)

    spec_file = Path(f'{APP_NAME}.spec')
    if spec_file.exists():
        spec_file.unlink()

    cmd = build_command()

    print("\n빌드 시작...")
    print(f"명령: {' '.join(cmd)}\n")

    result = subprocess.run(cmd)

    if result.returncode != 0:
        print("\n빌드 실패!")
        sys.exit(1)

    print("\n" + "=" * 50)
    print("빌드 성공!")
    print("=" * 50)

    output = output_path(script_dir)
    if output.exists():
        size_mb = output.stat().st_size / (1024 * 1024)
        print(f"\n실행 파일: {output}")
        print(f"파일 크기: {size_mb:.1f} MB")
        print("\n사용법:")
        print(f"    {output.relative_to(script_dir)}")


if __name__ == '__main__':
    build()
