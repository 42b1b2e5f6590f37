"""Grammar symbols, and how they match.

A grammar is a graph of `Symbol`s. Every symbol has a name (the rule it
belongs to, or a generated `_N` name if it's just some anonymous piece of a
rule) and knows how to `match` itself against a `CharStream`, producing a
`Token` on success or `NOTHING` on failure.

Matching is plain recursive descent with backtracking. The only real rule is
that a symbol that fails must leave the stream exactly where it found it.
Most symbols do that by construction; the ones that consume more than one
thing (`Sequence`, `Text`) save a checkpoint first and revert to it.

Two other things thread through every match:

- The *skip* symbol, which is matched (and thrown away) between the elements
  of sequences and repetitions. It's how whitespace and comments stay out of
  every rule. Rules whose names are all upper case (`ID`, `DIGIT`) are
  "lexical": nothing is skipped anywhere inside them.

- The *guard*, the set of (rule name, position) pairs currently being
  matched. A symbol that is asked to match at a position where it is already
  in progress fails immediately instead of recursing forever. That is the
  whole of the left-recursion story: `expr: expr "+" term | term;` will not
  hang, but it will also only ever match through `term` at its first step.
"""

import abc
import copy
import itertools
import logging

from .errors import UnassignedError
from .intvector import IntVector
from .once import WriteOnce
from .stream import CharStream, StreamExhausted
from .tokens import (
    EMPTY,
    NOTHING,
    CharacterToken,
    JunctionToken,
    MultipleToken,
    OptionToken,
    SequenceToken,
    StarToken,
    SwitchToken,
    TextToken,
    Token,
)

# Inclusive, unlike a Python range.
MAX_CODE_POINT = 0x10FFFF

Guard = set[tuple[str, int]]

match_log = logging.getLogger("bootgram.match")

_anonymous_ids = itertools.count()


class Symbol(abc.ABC):
    name: str

    def __init__(self, name: str | None = None):
        if name is None:
            name = f"_{next(_anonymous_ids)}"
        self.name = name

    @property
    def anonymous(self) -> bool:
        return self.name.startswith("_")

    @property
    def lexical(self) -> bool:
        """True if no skip-text may appear anywhere inside this symbol."""
        return self.name.isupper()

    def renamed(self, name: str) -> "Symbol":
        """A copy of this symbol that goes by a different name."""
        result = copy.copy(self)
        result.name = name
        return result

    def match(self, stream: CharStream, skip: "Symbol", guard: Guard | None = None) -> Token:
        """Try to match this symbol at the current position of the stream.

        Returns the token on success. On failure returns NOTHING, with the
        stream back where it started.
        """
        if guard is None:
            guard = set()

        position = stream.position
        key = (self.name, position)
        if key in guard:
            if match_log.isEnabledFor(logging.DEBUG):
                match_log.debug(f"{self.name} @{position}: already in progress")
            return NOTHING

        if self.lexical:
            skip = ZERO_LENGTH

        depth = stream.depth
        guard.add(key)
        try:
            result = self._match(stream, skip, guard)
        except StreamExhausted:
            stream.reset(position, depth)
            result = NOTHING
        finally:
            guard.discard(key)

        if match_log.isEnabledFor(logging.DEBUG):
            if result is NOTHING:
                match_log.debug(f"{self.name} @{position}: no match")
            else:
                match_log.debug(f"{self.name} @{position}: matched {result.substring!r}")
        return result

    def consume(self, stream: CharStream, guard: Guard | None = None) -> Token:
        """Match this symbol with nothing skipped inside it. This is how the
        skip rule itself gets matched.
        """
        return self.match(stream, ZERO_LENGTH, guard)

    @abc.abstractmethod
    def _match(self, stream: CharStream, skip: "Symbol", guard: Guard) -> Token:
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class Sequence(Symbol):
    """All of the members, in order, with skip-text between them."""

    members: tuple[Symbol, ...]

    def __init__(self, *members: Symbol, name: str | None = None):
        super().__init__(name)
        if len(members) == 0:
            raise ValueError("A sequence needs at least one member")
        self.members = members

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        start = stream.position
        end = start
        children = []

        stream.save()
        for index, member in enumerate(self.members):
            if index > 0:
                skip.consume(stream, guard)

            child = member.match(stream, skip, guard)
            if child is NOTHING:
                stream.revert()
                return NOTHING

            children.append(child)
            if child.end > child.start:
                end = stream.position
        stream.discard()

        # Skip-text in front of trailing empty members isn't ours to keep.
        stream.regress(stream.position - end)
        return SequenceToken(self, stream.substring(end - start), start, tuple(children))


class Junction(Symbol):
    """Ordered choice: the first member that matches wins."""

    members: tuple[Symbol, ...]

    def __init__(self, *members: Symbol, name: str | None = None):
        super().__init__(name)
        if len(members) == 0:
            raise ValueError("A junction needs at least one member")
        self.members = members

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        position = stream.position
        for ordinal, member in enumerate(self.members):
            # A member already in progress here would fail straight away; don't
            # even ask.
            if (member.name, position) in guard:
                continue

            child = member.match(stream, skip, guard)
            if child is not NOTHING:
                return JunctionToken(self, child.substring, child.start, (child,), ordinal)

        return NOTHING


class Multiple(Symbol):
    """One or more of the inner symbol, with skip-text between them.

    An inner symbol that can match the empty string would repeat forever, so:
    a zero-width match counts as a repetition, but a second zero-width match in
    a row ends the loop (and is dropped).
    """

    inner: Symbol

    def __init__(self, inner: Symbol, name: str | None = None):
        super().__init__(name)
        self.inner = inner

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        start = stream.position
        end = start
        children: list[Token] = []
        previous_empty = False

        while True:
            if len(children) > 0:
                skip.consume(stream, guard)

            child = self.inner.match(stream, skip, guard)
            if child is NOTHING:
                break

            if child.end == child.start:
                if previous_empty:
                    break
                previous_empty = True
            else:
                previous_empty = False
                end = stream.position

            children.append(child)

        if len(children) == 0:
            return NOTHING

        stream.regress(stream.position - end)
        return MultipleToken(self, stream.substring(end - start), start, tuple(children))


class Option(Symbol):
    """Zero or one of the inner symbol. Never fails."""

    inner: Symbol

    def __init__(self, inner: Symbol, name: str | None = None):
        super().__init__(name)
        self.inner = inner

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        child = self.inner.match(stream, skip, guard)
        if child is NOTHING:
            return OptionToken(self, "", stream.position)
        return OptionToken(self, child.substring, child.start, (child,))


class Star(Symbol):
    """Zero or more of the inner symbol. Never fails.

    This is just `Option(Multiple(inner))`, except that the repetitions end up
    as the direct children of the resulting token.
    """

    inner: Symbol

    def __init__(self, inner: Symbol, name: str | None = None):
        super().__init__(name)
        self.inner = inner
        self._repeat = Multiple(inner)

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        repeated = self._repeat.match(stream, skip, guard)
        if repeated is NOTHING:
            return StarToken(self, "", stream.position)
        return StarToken(self, repeated.substring, repeated.start, repeated.children)


class Switch(Symbol):
    """A character class: one character from any of a set of inclusive ranges
    of code points. `lower[i]` and `upper[i]` are the bounds of range `i`, and
    the ordinal of the token is the index of the first range that matched.
    """

    lower: IntVector
    upper: IntVector

    def __init__(self, lower: IntVector, upper: IntVector, name: str | None = None):
        super().__init__(name)
        if len(lower) != len(upper):
            raise ValueError(f"Switch bounds differ in length: {len(lower)} vs {len(upper)}")
        for lo, hi in zip(lower, upper):
            if lo > hi or hi > MAX_CODE_POINT:
                raise ValueError(f"Bad switch range {lo}-{hi}")
        self.lower = lower
        self.upper = upper

    @classmethod
    def of(cls, *ranges: str | tuple[str, str], name: str | None = None) -> "Switch":
        """Build a switch from single characters and (low, high) pairs.

        Switch.of(("a", "z"), ("A", "Z"), "_")
        """
        lower = IntVector()
        upper = IntVector()
        for r in ranges:
            if isinstance(r, str):
                lower.push(ord(r))
                upper.push(ord(r))
            else:
                lower.push(ord(r[0]))
                upper.push(ord(r[1]))
        return cls(lower, upper, name)

    @classmethod
    def excluding(cls, *chars: str, name: str | None = None) -> "Switch":
        """A switch matching any character except the given ones."""
        lower = IntVector()
        upper = IntVector()
        next_cp = 0
        for cp in sorted(set(ord(c) for c in chars)):
            if cp > next_cp:
                lower.push(next_cp)
                upper.push(cp - 1)
            next_cp = cp + 1
        if next_cp <= MAX_CODE_POINT:
            lower.push(next_cp)
            upper.push(MAX_CODE_POINT)
        return cls(lower, upper, name)

    @property
    def ranges(self) -> list[tuple[int, int]]:
        return list(zip(self.lower, self.upper))

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        start = stream.position
        cp = ord(stream.peek())
        for ordinal in range(len(self.lower)):
            if self.lower[ordinal] <= cp <= self.upper[ordinal]:
                stream.advance()
                return SwitchToken(self, stream.substring(1), start, ordinal=ordinal)
        return NOTHING


class AnyCharacter(Switch):
    """Matches any single character at all. Written `[-]`."""

    def __init__(self, name: str | None = None):
        super().__init__(IntVector([0]), IntVector([MAX_CODE_POINT]), name)


class Text(Symbol):
    """An exact string."""

    literal: str

    def __init__(self, literal: str, name: str | None = None):
        super().__init__(name)
        self.literal = literal

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        start = stream.position
        stream.save()
        for expected in self.literal:
            if stream.next() != expected:
                stream.revert()
                return NOTHING
        stream.discard()
        return TextToken(self, self.literal, start)


class Character(Symbol):
    """Exactly one particular character."""

    literal: str

    def __init__(self, literal: str, name: str | None = None):
        super().__init__(name)
        if len(literal) != 1:
            raise ValueError(f"Character needs exactly one character, not {literal!r}")
        self.literal = literal

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        start = stream.position
        if stream.peek() != self.literal:
            return NOTHING
        stream.advance()
        return CharacterToken(self, self.literal, start)


class ImplicitSymbol(Symbol):
    """A stand-in for a rule that is used before it is defined.

    The `reference` gets filled in (once) when the real rule shows up. Until
    then, trying to match this is an error.
    """

    reference = WriteOnce("implicit symbol reference")

    def __init__(self, name: str):
        super().__init__(name)

    @property
    def resolved(self) -> bool:
        return ImplicitSymbol.reference.is_set(self)

    def match(self, stream: CharStream, skip: Symbol, guard: Guard | None = None) -> Token:
        # The reference is the real rule, under the same name; it does its own
        # guarding.
        if not self.resolved:
            raise UnassignedError(f"'{self.name}' was referenced but never defined")
        return self.reference.match(stream, skip, guard)

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        return self.reference._match(stream, skip, guard)


class ZeroLengthSymbol(Symbol):
    """Matches the empty string, always. Don't make a new one of these, use
    `ZERO_LENGTH`.
    """

    def __init__(self):
        super().__init__("_zero")

    def match(self, stream: CharStream, skip: Symbol, guard: Guard | None = None) -> Token:
        return EMPTY

    def _match(self, stream: CharStream, skip: Symbol, guard: Guard) -> Token:
        return EMPTY


ZERO_LENGTH = ZeroLengthSymbol()
