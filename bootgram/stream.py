"""Character streams that the matcher reads from.

A stream is a cursor over some text that can be moved backwards as well as
forwards, because the matcher backtracks constantly. The matcher brackets
risky work with `save()`, and then either `discard()`s the checkpoint (it
worked) or `revert()`s to it (it didn't).

Running off either end of the stream raises `StreamExhausted`. That is not an
error as far as anybody outside this package is concerned: `Symbol.match`
turns it into an ordinary failed match.
"""

import abc
import os

from .intvector import IntVector


class StreamExhausted(Exception):
    """Tried to read or move beyond the available input."""

    pass


class CharStream(abc.ABC):
    position: int
    furthest: int
    _buffer: str
    _saved: IntVector

    def __init__(self):
        self.position = 0
        self.furthest = 0
        self._buffer = ""
        self._saved = IntVector()

    @abc.abstractmethod
    def _fill(self) -> bool:
        """Append more input to the buffer. Return False if there is no more."""
        raise NotImplementedError()

    def _ensure(self, length: int) -> bool:
        while len(self._buffer) < length:
            if not self._fill():
                return False
        return True

    def peek(self) -> str:
        if self.position > self.furthest:
            self.furthest = self.position
        if not self._ensure(self.position + 1):
            raise StreamExhausted(f"no character at {self.position}")
        return self._buffer[self.position]

    def next(self) -> str:
        result = self.peek()
        self.position += 1
        return result

    def has_next(self) -> bool:
        return self._ensure(self.position + 1)

    def substring(self, length: int) -> str:
        """The last `length` characters before the current position."""
        if length < 0 or length > self.position:
            raise StreamExhausted(f"cannot look back {length} from {self.position}")
        return self._buffer[self.position - length : self.position]

    def advance(self, count: int = 1):
        if count < 0:
            raise ValueError("advance() takes a non-negative count")
        if not self._ensure(self.position + count):
            raise StreamExhausted(f"cannot advance {count} from {self.position}")
        self.position += count

    def regress(self, count: int = 1):
        if count < 0:
            raise ValueError("regress() takes a non-negative count")
        if count > self.position:
            raise StreamExhausted(f"cannot regress {count} from {self.position}")
        self.position -= count

    def save(self):
        self._saved.push(self.position)

    def revert(self):
        self.position = self._saved.pop()

    def discard(self):
        self._saved.pop()

    @property
    def depth(self) -> int:
        """The number of saved positions."""
        return len(self._saved)

    def reset(self, position: int, depth: int):
        """Put the cursor and the checkpoint stack back the way they were."""
        self.position = position
        self._saved.truncate(depth)

    def location(self, position: int | None = None) -> tuple[int, int]:
        """The 1-based (line, column) of the given (or current) position."""
        if position is None:
            position = self.position
        self._ensure(position)
        position = min(position, len(self._buffer))
        line = self._buffer.count("\n", 0, position) + 1
        column = position - (self._buffer.rfind("\n", 0, position) + 1) + 1
        return (line, column)

    def context(self, position: int | None = None, width: int = 16) -> str:
        """A short excerpt of the input around a position, with the character
        at that position marked with braces.
        """
        if position is None:
            position = self.position
        self._ensure(position + width + 1)
        before = self._buffer[max(0, position - width) : position]
        current = self._buffer[position : position + 1]
        after = self._buffer[position + 1 : position + 1 + width]
        return f"{before}{{{current}}}{after}"

    def close(self):
        pass

    def __enter__(self) -> "CharStream":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.context()!r})"


class StringCharStream(CharStream):
    """A stream over text that is already in memory."""

    def __init__(self, text: str):
        super().__init__()
        self._buffer = text

    def _fill(self) -> bool:
        return False


class FileCharStream(CharStream):
    """A stream over a text file, read lazily as the matcher asks for more.

    Reads start at `buffer_size` characters and grow with the buffer, so a
    whole file takes a logarithmic number of reads. Line endings are left
    alone, so positions agree with parsing the same text from a string.

    The file is opened right away and stays open until `close()`, so use it in
    a `with` block.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        *,
        encoding: str = "utf-8",
        buffer_size: int = 65536,
    ):
        super().__init__()
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.path = path
        self.buffer_size = buffer_size
        self._file = open(path, "r", encoding=encoding, newline="")

    def _fill(self) -> bool:
        if self._file.closed:
            return False
        chunk = self._file.read(max(self.buffer_size, len(self._buffer)))
        if not chunk:
            return False
        self._buffer += chunk
        return True

    def close(self):
        self._file.close()
