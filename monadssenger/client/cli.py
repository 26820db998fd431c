"""
터미널 채팅 클라이언트

    monadssenger-chat --url http://localhost:8000 --room lobby

명령:
    /room <id>  채팅방 이동
    /quit       종료
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Set

from monadssenger.schemas.message import MessageResponse
from monadssenger.schemas.typing import TypingIndicatorResponse
from monadssenger.utils.time_utils import format_clock_time

from .backends import HttpChatBackend
from .sync import ChatSession, ConnectionState, is_local_message_id


class TerminalView:
    """세션 상태 변경을 터미널에 출력"""

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self._printed: Set[str] = set()
        self.local = False

    def write(self, line: str) -> None:
        print(line, file=self.out, flush=True)

    def reset(self, room: str) -> None:
        self._printed.clear()
        self.write(f"--- #{room} ---")

    def show_messages(self, messages: List[MessageResponse]) -> None:
        for message in messages:
            if message.id in self._printed:
                continue
            # 전송 중인 메시지는 저장된 레코드가 돌아오면 출력
            if not self.local and is_local_message_id(message.id):
                continue
            self._printed.add(message.id)
            self.write(f"[{format_clock_time(message.created_at)}] {message.username}: {message.message}")

    def show_typing(self, typing: List[TypingIndicatorResponse]) -> None:
        if not typing:
            return
        names = ", ".join(indicator.username for indicator in typing)
        verb = "is" if len(typing) == 1 else "are"
        self.write(f"  ... {names} {verb} typing")

    def show_warning(self, warning: str) -> None:
        self.write(f"! {warning}")

    def show_state(self, state: ConnectionState) -> None:
        self.local = state is ConnectionState.DISCONNECTED
        if state is ConnectionState.DISCONNECTED:
            self.write("! Backend unavailable. Messages are kept locally and will not reach other users.")


async def _read_line() -> Optional[str]:
    line = await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)
    if not line:
        return None
    return line.rstrip("\n")


async def run(url: str, room: str, timeout: float) -> None:
    view = TerminalView()
    session = ChatSession(
        HttpChatBackend(base_url=url, timeout=timeout),
        room=room,
        on_messages=view.show_messages,
        on_typing=view.show_typing,
        on_warning=view.show_warning,
        on_state_change=view.show_state,
    )

    view.reset(room)
    async with session:
        view.write(f"You are {session.identity.username} ({session.identity.user_color})")
        while True:
            line = await _read_line()
            if line is None or line.strip() == "/quit":
                break

            if line.startswith("/room"):
                parts = line.split(maxsplit=1)
                if len(parts) < 2 or not parts[1].strip():
                    view.show_warning("Usage: /room <id>")
                    continue
                new_room = parts[1].strip()
                if new_room != session.room:
                    view.reset(new_room)
                    await session.switch_room(new_room)
                continue

            await session.on_input_change()
            await session.send(line)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="monadssenger-chat", description="Monadssenger terminal client")
    parser.add_argument("--url", default="http://localhost:8000", help="API base URL")
    parser.add_argument("--room", default="lobby", help="initial chat room")
    parser.add_argument("--timeout", type=float, default=10.0, help="HTTP timeout in seconds")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        asyncio.run(run(args.url, args.room, args.timeout))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
