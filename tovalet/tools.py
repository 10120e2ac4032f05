"""
외부 도구 모듈 - ssh-keygen, ssh-copy-id, ssh 실행

구현 방식:
- 실제 작업은 모두 OpenSSH 명령행 도구가 수행
- 대화형 실행: 콘솔 입출력을 그대로 물려받음 (패스프레이즈, 비밀번호 입력)
- 비대화형 실행: 출력을 캡처 (연결 테스트용)

실행기(runner) 분리:
- ToolInvoker는 CommandRunner.run(argv, interactive)만 사용
- 테스트에서는 가짜 실행기로 교체
"""

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional


logger = logging.getLogger(__name__)

SSH_KEYGEN = "ssh-keygen"
SSH_COPY_ID = "ssh-copy-id"
SSH = "ssh"

PROBE_TIMEOUT = 5
PROBE_COMMAND = "echo 'Connection successful!'"

INSTALL_HINTS = {
    SSH_KEYGEN: "OpenSSH 클라이언트 도구를 먼저 설치하세요.",
    SSH_COPY_ID: (
        "설치 방법:\n"
        "  - Debian/Ubuntu: sudo apt install openssh-client\n"
        "  - macOS: 보통 기본 설치되어 있음\n"
        "  - 또는 아래 수동 방법 사용"
    ),
    SSH: "OpenSSH 클라이언트를 먼저 설치하세요.",
}


class ToolNotFoundError(Exception):
    """필요한 외부 도구가 PATH에 없음"""

    def __init__(self, tool: str):
        self.tool = tool
        self.hint = INSTALL_HINTS.get(tool, "")
        super().__init__(f"{tool}을(를) PATH에서 찾을 수 없습니다.")


@dataclass
class ToolResult:
    """외부 도구 실행 결과"""
    command: list[str]
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        """사용자에게 보여줄 실제 실행 명령"""
        return shlex.join(self.command)


class CommandRunner:
    """외부 명령 실행 인터페이스"""

    def run(self, argv: list[str], interactive: bool = True) -> int:
        raise NotImplementedError


class SubprocessRunner(CommandRunner):
    """subprocess 기반 실행기"""

    def run(self, argv: list[str], interactive: bool = True) -> int:
        """
        Args:
            argv: 실행할 명령과 인수
            interactive: True면 콘솔 입출력 상속, False면 출력 캡처

        Returns:
            종료 코드
        """
        logger.debug("실행: %s", shlex.join(argv))

        if interactive:
            return subprocess.call(argv)

        result = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
        )
        if result.stdout:
            logger.debug("stdout: %s", result.stdout.rstrip())
        if result.stderr:
            logger.debug("stderr: %s", result.stderr.rstrip())
        return result.returncode


class ToolInvoker:
    """OpenSSH 도구 호출 클래스"""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        """
        Args:
            runner: 명령 실행기 (기본: SubprocessRunner)
            which: 도구 위치 검색 함수 (기본: shutil.which)
        """
        self.runner = runner or SubprocessRunner()
        self._which = which

    def is_available(self, tool: str) -> bool:
        return self._which(tool) is not None

    def check_dependencies(self) -> dict:
        """도구별 설치 여부"""
        return {tool: self.is_available(tool) for tool in (SSH_KEYGEN, SSH_COPY_ID, SSH)}

    def require(self, tool: str) -> None:
        """
        도구 설치 확인

        Raises:
            ToolNotFoundError: PATH에 도구가 없는 경우
        """
        if not self.is_available(tool):
            raise ToolNotFoundError(tool)

    def _run(self, argv: list[str], interactive: bool = True) -> ToolResult:
        self.require(argv[0])
        exit_code = self.runner.run(argv, interactive=interactive)
        if exit_code != 0:
            logger.info("명령 실패 (종료 코드 %d): %s", exit_code, shlex.join(argv))
        return ToolResult(command=argv, exit_code=exit_code)

    def keygen_command(self, algorithm: str, path: Path, comment: str) -> list[str]:
        return [SSH_KEYGEN, "-t", algorithm, "-f", str(path), "-C", comment]

    def generate_key(self, algorithm: str, path: Path, comment: str) -> ToolResult:
        """
        키 쌍 생성 (패스프레이즈 입력은 ssh-keygen이 직접 처리)
        """
        return self._run(self.keygen_command(algorithm, path, comment))

    def copy_public_key(self, public_key_path: Path, alias: str) -> ToolResult:
        """
        공개키를 원격 서버의 authorized_keys에 설치
        (원격 비밀번호 입력은 ssh-copy-id가 직접 처리)
        """
        return self._run([SSH_COPY_ID, "-i", str(public_key_path), alias])

    def test_connection(self, alias: str, timeout: int = PROBE_TIMEOUT) -> ToolResult:
        """
        비대화형 연결 테스트 (BatchMode)

        비밀번호 입력이 필요하면 바로 실패하므로
        키 인증이 되는지만 확인할 수 있음
        """
        return self._run(
            [
                SSH,
                "-o", "BatchMode=yes",
                "-o", f"ConnectTimeout={timeout}",
                alias,
                PROBE_COMMAND,
            ],
            interactive=False,
        )

    def verbose_test(self, alias: str) -> ToolResult:
        """ssh -v 대화형 접속 (원격 세션 종료 또는 Ctrl+C까지)"""
        return self._run([SSH, "-v", alias])
