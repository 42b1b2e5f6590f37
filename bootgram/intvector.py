import array
import typing


class IntVector:
    """A compact, growable sequence of non-negative integers.

    We use these for character-class bounds (code points) and for the stack of
    saved stream positions, both of which are plain unsigned numbers that we
    want to keep small and fast to scan.
    """

    _values: array.array

    def __init__(self, values: typing.Iterable[int] = ()):
        self._values = array.array("L", values)

    @classmethod
    def of(cls, *values: int | str) -> "IntVector":
        """Build a vector from ints, or from single characters (as code points)."""
        return cls(ord(v) if isinstance(v, str) else v for v in values)

    def push(self, value: int):
        self._values.append(value)

    def pop(self) -> int:
        if len(self._values) == 0:
            raise IndexError("pop from empty IntVector")
        return self._values.pop()

    def top(self) -> int:
        if len(self._values) == 0:
            raise IndexError("top of empty IntVector")
        return self._values[-1]

    def truncate(self, length: int):
        del self._values[length:]

    def __getitem__(self, index: int) -> int:
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> typing.Iterator[int]:
        return iter(self._values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, IntVector):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"IntVector({list(self._values)!r})"
