"""
Streaming parser for the proxy's CONNECT response
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...core.constants import HEADER_TERMINATOR, LINE_BREAK, STATUS_ENCODING


class ParserState(Enum):
    AWAITING_TERMINATOR = "awaiting_terminator"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class ParsedResponse:
    """Header block of a CONNECT response plus whatever followed it"""
    status_line: str
    status_code: Optional[int]
    header_block: bytes
    trailing: bytes

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def parse_status_code(status_line: str) -> Optional[int]:
    """Extract the numeric code from ``HTTP/1.1 200 Reason``, or None"""
    parts = status_line.split(None, 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/"):
        return None
    if len(parts[1]) != 3 or not parts[1].isdigit():
        return None
    return int(parts[1])


class ResponseParser:
    """
    HTTP CONNECT response parser.

    Bytes are accumulated until the blank line ending the header block shows
    up. The whole buffer is searched on every feed, so a terminator split
    across two reads is still found. The parser reaches its terminal state
    exactly once.
    """

    def __init__(self):
        self.state = ParserState.AWAITING_TERMINATOR
        self.response: Optional[ParsedResponse] = None
        self._buffer: Optional[bytearray] = bytearray()

    @property
    def done(self) -> bool:
        return self.state is ParserState.TERMINATED

    @property
    def buffered(self) -> int:
        return len(self._buffer) if self._buffer is not None else 0

    def feed(self, data: bytes) -> Optional[ParsedResponse]:
        """
        Consume one inbound chunk.

        Returns:
            The parsed response once the header block is complete, else None

        Raises:
            RuntimeError: If called after the parser terminated
        """
        if self.done:
            raise RuntimeError("CONNECT response already parsed")

        self._buffer.extend(data)
        pos = self._buffer.find(HEADER_TERMINATOR)
        if pos < 0:
            return None

        header_block = bytes(self._buffer[:pos])
        trailing = bytes(self._buffer[pos + len(HEADER_TERMINATOR):])
        status_line = header_block.split(LINE_BREAK, 1)[0].decode(STATUS_ENCODING)

        self.response = ParsedResponse(
            status_line=status_line,
            status_code=parse_status_code(status_line),
            header_block=header_block,
            trailing=trailing,
        )
        self.state = ParserState.TERMINATED
        self._buffer = None
        return self.response
