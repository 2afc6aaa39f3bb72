"""명령줄 유틸리티 — 여러 클라이언트의 명령을 하나의 프로그램으로 묶음.

Command-line helpers.
``run_program`` wires sub-commands contributed by several clients into one
argparse program; ``confirm`` and ``prompt`` ask the user questions.

Usage:
    class Seeder:
        def add_commands(self, subparsers):
            parser = subparsers.add_parser("seed", help="Seed the database")
            parser.set_defaults(handler=self.seed)

        async def seed(self, args):
            ...

    run_program([Seeder()])
"""

import argparse
import asyncio
import inspect
import sys
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

_YES = {"y", "yes"}
_NO = {"n", "no"}


class CommandClient(Protocol):
    """add_commands를 구현하는 클라이언트 — Object contributing sub-commands."""

    def add_commands(self, subparsers: Any) -> None: ...


def build_parser(clients: Sequence[CommandClient], prog: str | None = None) -> argparse.ArgumentParser:
    """클라이언트들의 명령을 등록한 파서를 생성합니다.

    Build an ArgumentParser with the sub-commands of every client.

    Raises:
        TypeError: add_commands가 없는 클라이언트가 있을 때
                   (A client does not implement ``add_commands``)
    """
    parser = argparse.ArgumentParser(prog=prog)
    subparsers = parser.add_subparsers(dest="command")

    for client in clients:
        add_commands = getattr(client, "add_commands", None)
        if not callable(add_commands):
            raise TypeError(
                "Each client supplied to `run_program` must implement the `add_commands` function"
            )
        add_commands(subparsers)

    return parser


def run_program(
    clients: Sequence[CommandClient],
    argv: Sequence[str] | None = None,
    prog: str | None = None,
) -> Any:
    """여러 클라이언트의 명령을 실행합니다.

    Run the sub-command selected on the command line. With no arguments the
    help is printed and the program exits. Handlers are registered with
    ``parser.set_defaults(handler=...)`` and receive the parsed namespace;
    coroutine handlers are run with ``asyncio.run``.

    Args:
        clients: add_commands를 구현한 객체 목록 (Objects implementing ``add_commands``)
        argv: 명령줄 인자, None이면 sys.argv[1:] (Arguments; sys.argv[1:] when None)
        prog: 프로그램 이름 (Program name shown in help)

    Returns:
        Any: 핸들러 반환값 (The handler's return value)
    """
    parser = build_parser(clients, prog)
    args_list = list(sys.argv[1:] if argv is None else argv)

    if not args_list:
        parser.print_help()
        raise SystemExit(0)

    args = parser.parse_args(args_list)
    handler: Callable[[argparse.Namespace], Any] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        raise SystemExit(0)

    result = handler(args)
    if inspect.iscoroutine(result):
        return asyncio.run(result)
    return result


def _ask(message: str, input_func: Callable[[str], str]) -> str:
    return input_func(message).strip()


def confirm(
    text: str = "Are you sure?",
    default: bool = True,
    input_func: Callable[[str], str] = input,
) -> bool:
    """예/아니오 질문을 합니다.

    Ask a yes/no question. An empty answer picks ``default``; anything that
    is neither yes nor no asks again.
    """
    hint = "[Y/n]" if default else "[y/N]"
    while True:
        answer = _ask(f"{text} {hint} ", input_func).lower()
        if not answer:
            return default
        if answer in _YES:
            return True
        if answer in _NO:
            return False


def prompt(
    questions: Sequence[Mapping[str, Any]],
    input_func: Callable[[str], str] = input,
) -> dict[str, Any]:
    """질문 목록을 차례로 묻고 답을 모읍니다.

    Ask each question in turn and collect the answers by name.

    Each question is a mapping with ``name`` and ``message`` and optionally
    ``type`` (``"input"`` or ``"confirm"``) and ``default``.

    Returns:
        dict[str, Any]: 질문 이름 → 답 (Question name → answer)
    """
    answers: dict[str, Any] = {}
    for question in questions:
        name = question["name"]
        message = question.get("message", name)
        default = question.get("default")

        if question.get("type", "input") == "confirm":
            answers[name] = confirm(message, True if default is None else bool(default), input_func)
            continue

        suffix = f" ({default})" if default is not None else ""
        answer = _ask(f"{message}{suffix}: ", input_func)
        answers[name] = answer if answer else default
    return answers
