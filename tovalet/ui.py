"""
대화형 UI 모듈 - rich 라이브러리 기반 메뉴/프롬프트

메뉴 흐름:
- 메인 메뉴에서 단계 선택 -> 단계 종료/취소 후 항상 메인 메뉴로 복귀
- 각 단계: 입력 -> 검증 -> 확인 -> 실행
- 확인에서 'n'을 고르면 그 뒤 작업은 하지 않고 메뉴로 복귀
  (이미 실행된 작업, 예를 들어 생성된 키는 되돌리지 않음)

입력 종료(EOF)는 종료 선택과 같게 처리
"""

import platform
import shlex
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt, Confirm
from rich.table import Table
from rich import box

from . import __version__, permissions
from .keys import (
    DEFAULT_ALGORITHM,
    KeyPair,
    default_comment,
    find_existing_key,
    normalize_algorithm,
    public_key_path_for,
    read_public_key_info,
)
from .settings import SSHPaths
from .ssh_config import ConfigBlockStore, HostEntry, HostSummary, normalize_port
from .tools import SSH, SSH_COPY_ID, SSH_KEYGEN, ToolInvoker, ToolNotFoundError


# 콘솔 인스턴스 (전역)
console = Console()

DEFAULT_ALIAS = "myserver"
DEFAULT_USER = "root"

MENU_OPTIONS = [
    ("1", "새 SSH 키 생성"),
    ("2", "SSH config 항목 추가"),
    ("3", "공개키를 서버에 복사 (ssh-copy-id)"),
    ("4", "SSH 연결 테스트"),
    ("5", "SSH config 보기"),
    ("q", "종료"),
]

SECURITY_REMINDERS = (
    "[red]개인키는 절대 공유하지 마세요.[/red]\n"
    "가능하면 ed25519 키를 사용하고, rsa는 오래된 시스템에서만 사용하세요."
)


def detect_os() -> str:
    """실행 중인 OS 이름 (Linux / macOS / Windows / Unknown)"""
    system = platform.system()
    if system == "Linux":
        return "Linux"
    if system == "Darwin":
        return "macOS"
    if system == "Windows" or system.startswith(("CYGWIN", "MINGW", "MSYS")):
        return "Windows"
    return "Unknown"


def clear_screen(out: Console):
    """화면 지우기 (터미널일 때만)"""
    if out.is_terminal:
        out.clear()


def print_header(out: Console):
    """헤더 출력"""
    out.print(Panel(
        f"[bold cyan]ToValet v{__version__}[/bold cyan]\n"
        f"[dim]감지된 OS: {detect_os()}[/dim]\n\n"
        f"{SECURITY_REMINDERS}",
        subtitle="SSH 키/설정 도우미",
        box=box.DOUBLE
    ))
    out.print()


def print_menu(out: Console, title: str, options: list[tuple[str, str]]) -> str:
    """
    메뉴 출력 및 선택 받기

    Args:
        title: 메뉴 제목
        options: (키, 설명) 튜플 리스트

    Returns:
        선택된 키
    """
    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=False,
        padding=(0, 2)
    )
    table.add_column("Key", style="bold yellow", width=8)
    table.add_column("Description", style="white")

    for key, desc in options:
        # rich 마크업 이스케이프: [1]이 태그로 해석되지 않도록 \[ 사용
        table.add_row(f"\\[{key}]", desc)

    out.print(table)
    out.print()

    valid_keys = [opt[0].lower() for opt in options]
    while True:
        choice = Prompt.ask("선택", console=out).lower().strip()
        if choice in valid_keys:
            return choice
        out.print(f"[red]잘못된 선택입니다. {', '.join(valid_keys)} 중에서 입력하세요.[/red]")


def print_hosts_table(out: Console, hosts: list[HostSummary], title: str = "Host 목록"):
    """config에 정의된 Host 목록 테이블 출력"""
    if not hosts:
        out.print(Panel("[yellow]정의된 Host가 없습니다.[/yellow]", title=title))
        return

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("별칭", style="cyan", no_wrap=True)
    table.add_column("호스트", style="green")
    table.add_column("포트", style="yellow", justify="right")
    table.add_column("사용자", style="blue")
    table.add_column("IdentityFile", style="dim")

    for host in hosts:
        table.add_row(
            escape(host.alias),
            escape(host.hostname),
            host.port,
            escape(host.user),
            escape(host.identity_file),
        )

    out.print(table)


def print_manual_instructions(out: Console, alias: str, key_line: Optional[str] = None):
    """ssh-copy-id를 쓸 수 없을 때 수동 설치 방법"""
    key_text = escape(key_line) if key_line else "<YOUR_PUBLIC_KEY_LINE>"
    out.print(Panel(
        "1. 위의 공개키 한 줄을 복사\n"
        f"2. 서버에 접속 (비밀번호 필요할 수 있음): ssh {escape(alias)}\n"
        "3. 서버에서 실행:\n"
        "   mkdir -p ~/.ssh && chmod 700 ~/.ssh\n"
        f"   echo '{key_text}' >> ~/.ssh/authorized_keys\n"
        "   chmod 600 ~/.ssh/authorized_keys",
        title="수동 방법",
        title_align="left",
        border_style="yellow"
    ))


class ToValetUI:
    """ToValet 메인 UI 클래스"""

    def __init__(
        self,
        paths: Optional[SSHPaths] = None,
        store: Optional[ConfigBlockStore] = None,
        invoker: Optional[ToolInvoker] = None,
        out: Optional[Console] = None,
    ):
        self.paths = paths or SSHPaths.from_environment()
        self.store = store or ConfigBlockStore(self.paths)
        self.invoker = invoker or ToolInvoker()
        self.console = out or console
        self._running = True

    def run(self):
        """메인 루프 실행"""
        try:
            while self._running:
                self._main_menu()
        except EOFError:
            # 입력 스트림이 끊기면 종료 선택과 동일
            self._running = False

        self.console.print("\n[cyan]ToValet을 종료합니다. 안녕히 가세요![/cyan]\n")

    def _main_menu(self):
        """메인 메뉴"""
        clear_screen(self.console)
        print_header(self.console)

        choice = print_menu(self.console, "메인 메뉴", MENU_OPTIONS)
        self.dispatch(choice)

    def dispatch(self, choice: str):
        """메뉴 선택 처리 (단계 실행 후 메인 메뉴로 복귀)"""
        if choice == "q":
            self._running = False
            return

        actions = {
            "1": self._generate_key,
            "2": self._add_config,
            "3": self._copy_key,
            "4": self._test_connection,
            "5": self._view_config,
        }
        action = actions.get(choice)
        if action is None:
            return

        try:
            action()
        except KeyboardInterrupt:
            self.console.print("\n[yellow]취소되었습니다.[/yellow]")
        except ToolNotFoundError as e:
            self._print_missing_tool(e)
        except OSError as e:
            # 파일 시스템 오류는 해당 단계만 중단
            self.console.print(f"\n[red]파일 오류: {escape(str(e))}[/red]")

        self._pause()

    # ------------------------------------------------------------
    # 입력 도우미
    # ------------------------------------------------------------

    def _pause(self):
        Prompt.ask("\n계속하려면 Enter를 누르세요", console=self.console, default="", show_default=False)

    def _ask(self, prompt: str, default: Optional[str] = None) -> str:
        if default is None:
            value = Prompt.ask(prompt, console=self.console)
        else:
            value = Prompt.ask(prompt, console=self.console, default=default)
        return value.strip()

    def _ask_required(self, prompt: str, label: str, default: Optional[str] = None) -> str:
        """빈 값이면 다시 묻기"""
        while True:
            value = self._ask(prompt, default)
            if value:
                return value
            self.console.print(f"[red]{label}은(는) 비워 둘 수 없습니다.[/red]")

    def _ask_alias(self, prompt: str) -> str:
        """Host 별칭 입력 (비어 있거나 공백이 있으면 다시 묻기)"""
        while True:
            alias = self._ask_required(prompt, "Host 별칭", DEFAULT_ALIAS)
            if len(alias.split()) == 1:
                return alias
            self.console.print("[red]Host 별칭에는 공백을 넣을 수 없습니다.[/red]")

    def _confirm(self, prompt: str, default: bool = True) -> bool:
        return Confirm.ask(prompt, console=self.console, default=default)

    def _cancelled(self, what: str):
        self.console.print(f"[yellow]{what}이(가) 취소되었습니다.[/yellow]")

    def _print_missing_tool(self, error: ToolNotFoundError):
        self.console.print(f"[red]오류: {escape(str(error))}[/red]")
        if error.hint:
            self.console.print(escape(error.hint))

    def _default_identity(self) -> str:
        existing = find_existing_key(self.paths)
        if existing is None:
            existing = self.paths.default_key_path(DEFAULT_ALGORITHM)
        return str(existing)

    # ------------------------------------------------------------
    # 1. 키 생성
    # ------------------------------------------------------------

    def _generate_key(self):
        """SSH 키 쌍 생성"""
        self.console.print(Panel(
            "보안 권장 사항: 가능하면 'ed25519'를 사용하고, 필요한 경우에만 'rsa'를 사용하세요.",
            title="SSH 키 생성"
        ))
        self.invoker.require(SSH_KEYGEN)

        algorithm, recognized = normalize_algorithm(self._ask("키 종류 (ed25519/rsa)", DEFAULT_ALGORITHM))
        if not recognized:
            self.console.print(f"[yellow]지원하지 않는 키 종류입니다. {DEFAULT_ALGORITHM}를 사용합니다.[/yellow]")

        permissions.secure_directory(self.paths.ssh_dir)

        key_path = self.paths.expand(
            self._ask("개인키 경로", str(self.paths.default_key_path(algorithm)))
        )
        comment = self._ask("키 주석", default_comment())
        key = KeyPair(algorithm=algorithm, private_key_path=key_path, comment=comment)

        if key.exists():
            self.console.print(
                f"[yellow]{escape(str(key_path))} 파일이 이미 있습니다. "
                "ssh-keygen이 덮어쓸지 물어봅니다.[/yellow]"
            )

        planned = self.invoker.keygen_command(key.algorithm, key.private_key_path, key.comment)
        self.console.print("\nssh-keygen을 대화형으로 실행하므로 패스프레이즈를 직접 정할 수 있습니다.")
        self.console.print("실행할 명령:")
        self.console.print(f"  [bold]{escape(shlex.join(planned))}[/bold]\n")

        if not self._confirm("키를 생성하시겠습니까?", default=True):
            self._cancelled("키 생성")
            return

        result = self.invoker.generate_key(key.algorithm, key.private_key_path, key.comment)
        if not result.success:
            self.console.print(
                f"\n[red]키 생성 실패 (종료 코드 {result.exit_code}): "
                f"{escape(result.command_line)}[/red]"
            )
            return

        permissions.secure_directory(self.paths.ssh_dir)
        if key.exists():
            permissions.secure_private_key(key.private_key_path)
        if key.public_key_path.is_file():
            permissions.secure_public_key(key.public_key_path)

        self.console.print("\n[green]키 생성이 완료되었습니다.[/green]")
        self.console.print(f"개인키: {escape(str(key.private_key_path))}")
        if key.public_key_path.is_file():
            self.console.print(f"공개키: {escape(str(key.public_key_path))}")
        self.console.print("\n[red]보안 주의: 개인키 파일은 절대 공유하지 말고 .pub 파일만 공유하세요.[/red]")

    # ------------------------------------------------------------
    # 2. config 항목 추가
    # ------------------------------------------------------------

    def _add_config(self):
        """SSH config에 Host 블록 추가"""
        self.console.print(Panel("새 Host 정보를 입력하세요", title="SSH config 항목 추가"))

        permissions.secure_directory(self.paths.ssh_dir)

        alias = self._ask_alias("Host 별칭 (짧은 이름)")
        hostname = self._ask_required("호스트명 또는 IP", "호스트명/IP")
        user = self._ask_required("SSH 사용자 이름", "사용자 이름", DEFAULT_USER)

        port, valid_port = normalize_port(self._ask("SSH 포트", "22"))
        if not valid_port:
            self.console.print("[yellow]잘못된 포트입니다. 22를 사용합니다.[/yellow]")

        identity_file = self._ask("개인키 경로 (IdentityFile)", self._default_identity())
        identity_path = self.paths.expand(identity_file)

        if not identity_path.is_file():
            self.console.print(f"\n[yellow]경고: {escape(str(identity_path))}에 개인키가 없습니다.[/yellow]")
            if not self._confirm("그래도 계속하시겠습니까? (키는 나중에 1번 메뉴로 생성 가능)", default=False):
                self._cancelled("config 추가")
                return

        if self.store.has_host(alias):
            self.console.print(
                f"[yellow]'{escape(alias)}' Host가 이미 config에 있습니다. "
                "추가해도 먼저 나온 블록이 사용됩니다.[/yellow]"
            )
            if not self._confirm("그래도 추가하시겠습니까?", default=False):
                self._cancelled("config 추가")
                return

        entry = HostEntry(
            alias=alias,
            hostname=hostname,
            user=user,
            identity_file=identity_file,
            port=port,
        )

        config_path = escape(str(self.store.config_file))
        self.console.print(Panel(
            escape(self.store.render_block(entry).rstrip()),
            title=f"{config_path}에 추가할 항목",
            title_align="left"
        ))

        if not self._confirm(f"이 블록을 {config_path}에 추가하시겠습니까?", default=True):
            self._cancelled("config 추가")
            return

        try:
            backup = self.store.append_host_block(entry)
        except OSError as e:
            self.console.print(f"[red]config 저장 실패: {escape(str(e))}[/red]")
            return

        self.console.print("[green]config가 업데이트되었습니다.[/green]")
        if backup:
            self.console.print(f"[dim]백업: {escape(str(backup))}[/dim]")

        public_key = public_key_path_for(identity_path)
        if not public_key.is_file():
            self.console.print(f"\n공개키가 없습니다: {escape(str(public_key))}")
            self.console.print("먼저 키를 생성하거나(1번) 나중에 공개키를 복사하세요(3번).")
            return

        if self._confirm(f"\nssh-copy-id로 공개키를 {escape(alias)}에 지금 복사하시겠습니까?", default=True):
            key_line = public_key.read_text(encoding='utf-8', errors='replace').strip()
            self._run_copy(public_key, alias, key_line)

    # ------------------------------------------------------------
    # 3. 공개키 복사
    # ------------------------------------------------------------

    def _copy_key(self):
        """공개키를 원격 서버로 복사"""
        self.console.print(Panel("공개키를 원격 서버에 복사합니다 (ssh-copy-id)", title="공개키 복사"))
        self.invoker.require(SSH_COPY_ID)

        alias = self._ask_alias("공개키를 복사할 Host 별칭")

        identity_path = self.store.find_identity_file(alias)
        if identity_path is None or not identity_path.is_file():
            identity_path = self.paths.expand(self._ask("개인키 경로", self._default_identity()))
            if not identity_path.is_file():
                self.console.print(f"\n[red]오류: {escape(str(identity_path))}에 개인키가 없습니다.[/red]")
                self.console.print("먼저 키를 생성하세요 (1번).")
                return

        public_key = public_key_path_for(identity_path)
        if not public_key.is_file():
            self.console.print(f"[red]오류: {escape(str(public_key))}에 공개키가 없습니다.[/red]")
            self.console.print("먼저 키를 생성하세요 (1번).")
            return

        key_line = public_key.read_text(encoding='utf-8', errors='replace').strip()
        details = [escape(key_line)]
        try:
            info = read_public_key_info(public_key)
            details.append(f"\n[dim]종류: {escape(info.key_type)} | 지문: {info.fingerprint}[/dim]")
        except (ValueError, OSError) as e:
            details.append(f"\n[yellow]공개키 형식을 확인할 수 없습니다: {escape(str(e))}[/yellow]")

        self.console.print(Panel("".join(details), title="복사할 공개키", title_align="left"))
        self.console.print(f"대상: [cyan]{escape(alias)}[/cyan]\n")

        if not self._confirm(f"ssh-copy-id로 이 공개키를 {escape(alias)}에 복사하시겠습니까?", default=True):
            self._cancelled("공개키 복사")
            return

        self._run_copy(public_key, alias, key_line)

    def _run_copy(self, public_key, alias: str, key_line: Optional[str] = None) -> bool:
        """
        ssh-copy-id 실행 및 결과 처리

        Returns:
            복사 성공 여부
        """
        self.console.print(f"\n실행: ssh-copy-id -i {escape(str(public_key))} {escape(alias)}")
        self.console.print("원격 서버 비밀번호를 물어볼 수 있습니다.\n")

        try:
            result = self.invoker.copy_public_key(public_key, alias)
        except ToolNotFoundError as e:
            self._print_missing_tool(e)
            print_manual_instructions(self.console, alias, key_line)
            return False

        if not result.success:
            self.console.print(
                f"\n[red]X ssh-copy-id 실패 (종료 코드 {result.exit_code}): "
                f"{escape(result.command_line)}[/red]"
            )
            print_manual_instructions(self.console, alias, key_line)
            return False

        self.console.print("\n[green]V 공개키가 복사되었습니다![/green]")
        self.console.print(f"이제 비밀번호 없이 {escape(alias)}에 접속할 수 있습니다.\n")

        if self._confirm("지금 연결을 테스트하시겠습니까?", default=True):
            self._run_probe(alias)
        return True

    def _run_probe(self, alias: str) -> bool:
        """비대화형 연결 테스트 (실패해도 세션은 계속)"""
        try:
            result = self.invoker.test_connection(alias)
        except ToolNotFoundError as e:
            self._print_missing_tool(e)
            return False

        if result.success:
            self.console.print("[green]V 연결 테스트 통과![/green]")
            return True

        self.console.print(
            f"[yellow]연결 테스트에 실패했거나 추가 입력이 필요합니다 "
            f"(종료 코드 {result.exit_code}): {escape(result.command_line)}[/yellow]"
        )
        self.console.print(f"직접 테스트: ssh {escape(alias)}")
        return False

    # ------------------------------------------------------------
    # 4. 연결 테스트
    # ------------------------------------------------------------

    def _test_connection(self):
        """ssh -v 접속 테스트"""
        self.console.print(Panel("ssh -v로 접속을 시도합니다", title="SSH 연결 테스트"))
        self.invoker.require(SSH)

        alias = self._ask_alias("테스트할 Host 별칭")

        self.console.print(f"\n실행: ssh -v {escape(alias)}")
        self.console.print("[dim]Ctrl+C로 취소[/dim]\n")

        result = self.invoker.verbose_test(alias)
        if not result.success:
            self.console.print(
                f"\n[yellow]ssh 종료 코드 {result.exit_code}: "
                f"{escape(result.command_line)}[/yellow]"
            )

    # ------------------------------------------------------------
    # 5. config 보기
    # ------------------------------------------------------------

    def _view_config(self):
        """config 파일 내용 보기"""
        config_path = escape(str(self.store.config_file))
        text = self.store.view_config()
        if text is None:
            self.console.print(f"[yellow]{config_path}에 SSH config 파일이 없습니다.[/yellow]")
            return

        print_hosts_table(self.console, self.store.list_hosts())
        self.console.print()
        self.console.print(Panel(
            escape(text.rstrip()) or "[dim](비어 있음)[/dim]",
            title=config_path,
            title_align="left"
        ))


def main():
    """메인 진입점"""
    try:
        ui = ToValetUI()
        ui.run()
    except KeyboardInterrupt:
        console.print("\n[yellow]프로그램이 중단되었습니다.[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"\n[red]오류 발생: {escape(str(e))}[/red]")
        sys.exit(1)
