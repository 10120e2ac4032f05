#!/usr/bin/env python3
"""
ToValet - 메인 진입점

실행 방법:
    tovalet
    또는
    python -m tovalet.main
"""

import argparse
import logging
import sys

from .settings import log_level
from .ui import main as ui_main, console


def parse_args(argv=None):
    """명령줄 인수 파싱 (도움말만 지원)"""
    parser = argparse.ArgumentParser(
        prog="tovalet",
        description="ToValet - 대화형 SSH 키 생성 및 설정 도우미",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
기능:
  1) SSH 키 생성 (ssh-keygen, ed25519/rsa)
  2) ~/.ssh/config 항목 추가 (추가 전 config.bak 백업)
  3) 공개키를 서버에 복사 (ssh-copy-id)
  4) SSH 연결 테스트 (ssh -v)
  5) SSH config 보기

환경 변수:
  TOVALET_SSH_DIR     SSH 디렉토리 (기본: ~/.ssh)
  TOVALET_LOG_LEVEL   로그 레벨 (기본: WARNING)
"""
    )
    return parser.parse_args(argv)


def configure_logging():
    """로그 설정 (stderr 출력)"""
    logging.basicConfig(
        format='[%(levelname)s] %(asctime)s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        level=log_level()
    )


def main():
    """메인 함수"""
    parse_args()

    # 터미널 환경 체크
    if not sys.stdin.isatty():
        console.print("[red]오류: 터미널 환경에서 실행해주세요.[/red]")
        sys.exit(1)

    configure_logging()

    # 대화형 UI 실행
    ui_main()


if __name__ == "__main__":
    main()
