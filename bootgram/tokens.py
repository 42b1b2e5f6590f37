"""The parse tree.

Every successful match produces a `Token`. There is one kind of token for each
kind of symbol (a `Sequence` makes a `SequenceToken`, a `Switch` makes a
`SwitchToken`, and so on) and the token remembers the symbol that made it in
`origin`. The rule name of a token is the name of its origin, which is how
listeners get attached: after the match, `walk` visits the tree bottom-up and
calls the listener registered for each token's name, if any, storing what it
returns as the token's `payload`.

Listeners get handed the raw token and are expected to dig into it with the
typed accessors (`sequence_at`, `junction()`, `multiples()`, ...). These check
the kind of token they find and raise `TokenMismatchError` if it isn't the
one you asked for, rather than handing you something you'll trip over later.
"""

import dataclasses
import typing

from .errors import ParseError, SemanticError, TokenMismatchError
from .once import WriteOnce

if typing.TYPE_CHECKING:
    from .symbols import Symbol


T = typing.TypeVar("T", bound="Token")

Listener = typing.Callable[["Token", typing.Any], typing.Any]


@dataclasses.dataclass(eq=False, repr=False)
class Token:
    origin: "Symbol | None"
    substring: str
    start: int
    children: tuple["Token", ...] = ()
    ordinal: int = 0

    payload = WriteOnce("token payload")

    @property
    def name(self) -> str:
        """The name of the rule that produced this token."""
        if self.origin is None:
            return ""
        return self.origin.name

    @property
    def end(self) -> int:
        return self.start + len(self.substring)

    def narrow(self, kind: type[T]) -> T:
        """Return this token as a `kind`, or raise TokenMismatchError."""
        if not isinstance(self, kind):
            raise TokenMismatchError(
                f"expected {kind.__name__} but found {type(self).__name__} for '{self.name}'"
            )
        return self

    def _child(self, index: int, kind: type[T]) -> T:
        if not 0 <= index < len(self.children):
            raise TokenMismatchError(
                f"'{self.name}' has {len(self.children)} children, no child {index}"
            )
        child = self.children[index]
        if not isinstance(child, kind):
            raise TokenMismatchError(
                f"expected {kind.__name__} at child {index} of '{self.name}' "
                f"but found {type(child).__name__}"
            )
        return child

    def error(self, message: str) -> SemanticError:
        """Make an error about this token, for a listener to raise."""
        return SemanticError(f"{message} (in '{self.substring}')", self.start)

    def default_payload(self) -> typing.Any:
        return None

    def walk(self, listeners: typing.Mapping[str, Listener], state: typing.Any = None) -> typing.Any:
        """Compute payloads for this token and everything under it.

        Children are always done before their parents, so when a listener runs
        every token beneath it already has a payload. Tokens without a
        listener get a default payload: a list of child payloads for the
        multi-child kinds, the only child's payload for the single-child
        kinds, and None for literals.
        """
        for child in self.children:
            child.walk(listeners, state)

        listener = listeners.get(self.name)
        if listener is not None:
            try:
                value = listener(self, state)
            except ParseError as e:
                if e.position == 0 and e.location is None:
                    e.position = self.start
                raise
        else:
            value = self.default_payload()

        self.payload = value
        return value

    def leaves(self) -> typing.Iterator["Token"]:
        if len(self.children) == 0:
            yield self
        for child in self.children:
            yield from child.leaves()

    def format_lines(self, *, ignore_empty: bool = False) -> list[str]:
        lines = []

        def format_node(node: Token, indent: int):
            if ignore_empty and node.start == node.end:
                return

            kind = type(node).__name__.removesuffix("Token")
            if len(node.children) > 0:
                lines.append((" " * indent) + f"{node.name} {kind} [{node.start}, {node.end})")
                for child in node.children:
                    format_node(child, indent + 2)
            else:
                lines.append(
                    (" " * indent) + f"{node.name} {kind}:{node.substring!r} [{node.start}, {node.end})"
                )

        format_node(self, 0)
        return lines

    def format(self, *, ignore_empty: bool = False) -> str:
        return "\n".join(self.format_lines(ignore_empty=ignore_empty))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.substring!r}, {self.start})"


class _Sentinel(Token):
    def __init__(self, label: str):
        super().__init__(None, "", -1)
        self.label = label

    # Shared between trees, so the payload is always None and never stored.
    @property
    def payload(self) -> typing.Any:
        return None

    def walk(self, listeners: typing.Mapping[str, Listener], state: typing.Any = None) -> typing.Any:
        return None

    def __repr__(self) -> str:
        return self.label


# The result of a failed match.
NOTHING: Token = _Sentinel("NOTHING")

# The result of matching the zero-length symbol.
EMPTY: Token = _Sentinel("EMPTY")


class IndexedAccess(Token):
    """Accessors for tokens whose children are positional, i.e. sequences."""

    def __getitem__(self, index: int) -> Token:
        return self._child(index, Token)

    def __len__(self) -> int:
        return len(self.children)

    def at(self, index: int, kind: type[T]) -> T:
        return self._child(index, kind)

    def sequence_at(self, index: int) -> "SequenceToken":
        return self._child(index, SequenceToken)

    def junction_at(self, index: int) -> "JunctionToken":
        return self._child(index, JunctionToken)

    def multiple_at(self, index: int) -> "MultipleToken":
        return self._child(index, MultipleToken)

    def option_at(self, index: int) -> "OptionToken":
        return self._child(index, OptionToken)

    def star_at(self, index: int) -> "StarToken":
        return self._child(index, StarToken)

    def character_at(self, index: int) -> "CharacterToken":
        return self._child(index, CharacterToken)

    def text_at(self, index: int) -> "TextToken":
        return self._child(index, TextToken)

    def switch_at(self, index: int) -> "SwitchToken":
        return self._child(index, SwitchToken)

    def default_payload(self) -> typing.Any:
        return [child.payload for child in self.children]


class RepeatedAccess(Token):
    """Accessors for tokens that hold any number of matches of one thing."""

    @property
    def matches(self) -> tuple[Token, ...]:
        return self.children

    def __len__(self) -> int:
        return len(self.children)

    def all(self, kind: type[T]) -> list[T]:
        return [self._child(i, kind) for i in range(len(self.children))]

    def sequences(self) -> "list[SequenceToken]":
        return self.all(SequenceToken)

    def junctions(self) -> "list[JunctionToken]":
        return self.all(JunctionToken)

    def multiples(self) -> "list[MultipleToken]":
        return self.all(MultipleToken)

    def options(self) -> "list[OptionToken]":
        return self.all(OptionToken)

    def stars(self) -> "list[StarToken]":
        return self.all(StarToken)

    def characters(self) -> "list[CharacterToken]":
        return self.all(CharacterToken)

    def texts(self) -> "list[TextToken]":
        return self.all(TextToken)

    def switches(self) -> "list[SwitchToken]":
        return self.all(SwitchToken)

    def default_payload(self) -> typing.Any:
        return [child.payload for child in self.children]


class SingleAccess(Token):
    """Accessors for tokens that wrap (at most) one other token."""

    @property
    def match(self) -> Token:
        return self._child(0, Token)

    def one(self, kind: type[T]) -> T:
        return self._child(0, kind)

    def sequence(self) -> "SequenceToken":
        return self._child(0, SequenceToken)

    def junction(self) -> "JunctionToken":
        return self._child(0, JunctionToken)

    def multiple(self) -> "MultipleToken":
        return self._child(0, MultipleToken)

    def option(self) -> "OptionToken":
        return self._child(0, OptionToken)

    def star(self) -> "StarToken":
        return self._child(0, StarToken)

    def character(self) -> "CharacterToken":
        return self._child(0, CharacterToken)

    def text(self) -> "TextToken":
        return self._child(0, TextToken)

    def switch(self) -> "SwitchToken":
        return self._child(0, SwitchToken)

    def default_payload(self) -> typing.Any:
        if len(self.children) == 0:
            return None
        return self.children[0].payload


class SequenceToken(IndexedAccess):
    pass


class JunctionToken(SingleAccess):
    """The `ordinal` is the index of the alternative that matched."""

    pass


class MultipleToken(RepeatedAccess):
    pass


class StarToken(RepeatedAccess):
    @property
    def is_present(self) -> bool:
        return len(self.children) > 0


class OptionToken(SingleAccess):
    @property
    def is_present(self) -> bool:
        return len(self.children) > 0


class SwitchToken(Token):
    """The `ordinal` is the index of the character range that matched."""

    pass


class CharacterToken(Token):
    pass


class TextToken(Token):
    pass
