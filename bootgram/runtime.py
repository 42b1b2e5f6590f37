"""Grammars, and how to put them together.

A `Grammar` is a set of named rules plus the names of two special ones: the
*start* rule, which has to match the whole input, and the *skip* rule, which
is matched and thrown away between the pieces of everything else. It also
carries the listeners that turn the parse tree into something useful.

You don't make one directly; you get a `Builder` (usually from
`bootgram.grammar(text)`), tell it which rules are start and skip, hang
listeners off it, and then `build()`:

    builder = bootgram.grammar('''
        sum: NUMBER ("+" NUMBER)*;
        NUMBER: [0-9]+;
        skip: [ ]*;
    ''')
    builder.start("sum")
    builder.skip("skip")

    @builder.listener("NUMBER")
    def number(token, state):
        return int(token.substring)

    @builder.sequence("sum")
    def sum_(token, state):
        return token[0].payload + sum(s[1].payload for s in token.star_at(1).sequences())

    grammar = builder.build()
    assert grammar.parse("1 + 2 + 3") == 6

Rules whose names are all upper case, like `NUMBER` above, are lexical: the
skip rule is never matched anywhere inside them, so `NUMBER` can't match
"1 2" even though a lower-case `number: [0-9]+;` would.
"""

import logging
import os
import types
import typing

from .errors import (
    ConfigurationError,
    ParseError,
    ReassignmentError,
    RuleTypeError,
    UndefinedRuleError,
)
from .once import WriteOnce
from .stream import CharStream, FileCharStream, StringCharStream
from .symbols import (
    Character,
    Junction,
    Multiple,
    Option,
    Sequence,
    Star,
    Switch,
    Symbol,
    Text,
)
from .tokens import NOTHING, Listener, Token

grammar_log = logging.getLogger("bootgram.grammar")


class Grammar:
    """A finished grammar, ready to parse things.

    Grammars are immutable, and parsing keeps all of its state on the stack,
    so one grammar can be shared freely.
    """

    rules: typing.Mapping[str, Symbol]
    listeners: typing.Mapping[str, Listener]
    start: str
    skip: str

    def __init__(
        self,
        rules: typing.Mapping[str, Symbol],
        listeners: typing.Mapping[str, Listener],
        start: str,
        skip: str,
    ):
        for name in (start, skip):
            if name not in rules:
                raise UndefinedRuleError(f"No rule named '{name}'", [name])

        self.rules = types.MappingProxyType(dict(rules))
        self.listeners = types.MappingProxyType(dict(listeners))
        self.start = start
        self.skip = skip

    def parse(self, input: str, state: typing.Any = None) -> typing.Any:
        """Parse the input and return the payload of the start rule.

        Raises ParseError if the input doesn't match or is nested deeper than
        the recursion limit allows. Listeners can raise one too (as a
        SemanticError).
        """
        return self.parse_tree(input, state).payload

    def parse_tree(self, input: str, state: typing.Any = None) -> Token:
        """Parse the input and return the whole parse tree, with payloads
        already computed.
        """
        with StringCharStream(input) as stream:
            return self._run(stream, state)

    def parse_or_none(self, input: str, state: typing.Any = None) -> typing.Any:
        """Like `parse`, but returns None instead of raising ParseError.

        Configuration errors and listener bugs still raise: they aren't about
        the input.
        """
        try:
            return self.parse(input, state)
        except ParseError as e:
            grammar_log.debug(f"parse_or_none: {e}")
            return None

    def parse_file(
        self,
        path: str | os.PathLike,
        state: typing.Any = None,
        *,
        encoding: str = "utf-8",
    ) -> typing.Any:
        """Parse the contents of a file, reading it as we go."""
        with FileCharStream(path, encoding=encoding) as stream:
            return self._run(stream, state).payload

    def _run(self, stream: CharStream, state: typing.Any) -> Token:
        start = self.rules[self.start]
        skip = self.rules[self.skip]
        guard: set[tuple[str, int]] = set()

        try:
            skip.consume(stream, guard)
            root = start.match(stream, skip, guard)
        except RecursionError:
            raise self._error(stream, "Input nested too deeply", stream.furthest) from None
        if root is NOTHING:
            raise self._error(stream, "Unexpected input", stream.furthest)

        skip.consume(stream, guard)
        if stream.has_next():
            position = max(stream.position, stream.furthest)
            raise self._error(stream, "Unexpected trailing input", position)

        try:
            root.walk(self.listeners, state)
        except RecursionError:
            raise self._error(stream, "Input nested too deeply", root.start) from None
        except ParseError as e:
            if e.location is None:
                e.location = stream.location(e.position)
            raise

        return root

    def _error(self, stream: CharStream, message: str, position: int) -> ParseError:
        message = f"{message}: {stream.context(position)}"
        if grammar_log.isEnabledFor(logging.DEBUG):
            grammar_log.debug(f"parse failed at {position}: {message}")
        return ParseError(message, position, stream.location(position))

    def __repr__(self) -> str:
        return f"Grammar(start={self.start!r}, skip={self.skip!r}, {len(self.rules)} rules)"


class Builder:
    """Collects the bits of a grammar that don't come from its text: which
    rule is start, which is skip, and the listeners.

    Start and skip can each be set exactly once; each rule can have at most
    one listener. Listeners may assert what kind of symbol their rule is,
    which is checked right away rather than at parse time.
    """

    start_name = WriteOnce("Start rule")
    skip_name = WriteOnce("Skip rule")

    rules: typing.Mapping[str, Symbol]
    listeners: dict[str, Listener]

    def __init__(self, rules: typing.Mapping[str, Symbol]):
        self.rules = types.MappingProxyType(dict(rules))
        self.listeners = {}

    def _rule(self, name: str) -> Symbol:
        try:
            return self.rules[name]
        except KeyError:
            raise UndefinedRuleError(f"No rule named '{name}'", [name]) from None

    def start(self, name: str):
        self._rule(name)
        if Builder.start_name.is_set(self):
            raise ReassignmentError(f"Start rule already defined as '{self.start_name}'")
        self.start_name = name

    def skip(self, name: str):
        self._rule(name)
        if Builder.skip_name.is_set(self):
            raise ReassignmentError(f"Skip rule already defined as '{self.skip_name}'")
        self.skip_name = name

    def listener(
        self, name: str, kind: type[Symbol] | None = None
    ) -> typing.Callable[[Listener], Listener]:
        """The decorator that registers a listener for a rule.

        If `kind` is given, the rule must be that kind of symbol or this raises
        RuleTypeError.
        """
        rule = self._rule(name)
        if kind is not None and not isinstance(rule, kind):
            raise RuleTypeError(
                f"Rule '{name}' is a {type(rule).__name__}, not a {kind.__name__}"
            )
        if name in self.listeners:
            raise ReassignmentError(f"Rule '{name}' already has a listener")

        def wrapper(f: Listener) -> Listener:
            if name in self.listeners:
                raise ReassignmentError(f"Rule '{name}' already has a listener")
            self.listeners[name] = f
            return f

        return wrapper

    def sequence(self, name: str):
        return self.listener(name, Sequence)

    def junction(self, name: str):
        return self.listener(name, Junction)

    def multiple(self, name: str):
        return self.listener(name, Multiple)

    def option(self, name: str):
        return self.listener(name, Option)

    def star(self, name: str):
        return self.listener(name, Star)

    def character(self, name: str):
        return self.listener(name, Character)

    def text(self, name: str):
        return self.listener(name, Text)

    def switch(self, name: str):
        return self.listener(name, Switch)

    def build(self) -> Grammar:
        if not Builder.start_name.is_set(self):
            raise ConfigurationError("No start rule was declared")
        if not Builder.skip_name.is_set(self):
            raise ConfigurationError("No skip rule was declared")

        grammar = Grammar(self.rules, self.listeners, self.start_name, self.skip_name)
        if grammar_log.isEnabledFor(logging.INFO):
            grammar_log.info(
                f"built grammar: {len(self.rules)} rules, {len(self.listeners)} listeners, "
                f"start={self.start_name!r} skip={self.skip_name!r}"
            )
        return grammar
