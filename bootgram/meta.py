"""The grammar of grammars.

Grammar text is parsed by a grammar like any other. This module holds that
grammar, the *metagrammar*, built by hand out of `Symbol`s (there is nothing
to parse it with yet!) together with the listeners that turn a parsed grammar
text into a map of rules.

The notation looks like this:

    // Comments are C-style, either kind.
    number: "-"? DIGIT+ ("." DIGIT+)?;
    DIGIT: [0-9];

- A rule is `name: body;`. Rule names start with a letter.
- `a b` is a sequence, `a | b` is an ordered choice (the first alternative
  that matches wins), `a+`, `a?` and `a*` are one-or-more, optional, and
  zero-or-more, and parentheses group.
- `"x"` is a single character, `"xyz"` an exact string.
- `[a-z0-9_]` is a character class: ranges and single characters. `[-c]`
  means everything up to and including `c`, `[c-]` means `c` and everything
  after it, and `[-]` is any character at all.
- Inside literals and classes, backslash escapes are `\\t \\n \\r \\" \\' \\-
  \\\\ \\]`, plus `\\u` followed by *four octal digits* for any other code
  point. (Yes, octal.)
- Rules whose names are all upper case are lexical: skip-text is never
  allowed inside them.
- A rule can use a rule that is defined later in the text, but a rule can't
  just *be* another rule (`a: b;` is an error; say what you mean).

`META_SOURCE` is the metagrammar written in its own notation, and compiling
it with the hand-built metagrammar gives back the same set of rules.
"""

import dataclasses
import typing

from .errors import UndefinedRuleError
from .runtime import Builder, Grammar
from .intvector import IntVector
from .symbols import (
    MAX_CODE_POINT,
    AnyCharacter,
    Character,
    ImplicitSymbol,
    Junction,
    Multiple,
    Option,
    Sequence,
    Star,
    Switch,
    Symbol,
    Text,
)
from .tokens import JunctionToken, MultipleToken, SequenceToken

META_SOURCE = r"""
// The notation, in the notation.
ID: [a-zA-Z] [a-zA-Z0-9_]*;
DIGIT: [0-9];

// \u takes four octal digits.
escape: "\\" ([tnr"'\-\\\]] | "u" DIGIT DIGIT DIGIT DIGIT);
char: escape | [-!#-[\]-];
range_char: escape | [-,.-[^-];

switch: "[-]" | "[" ("-" range_char)? (range_char "-" range_char | range_char "-" | range_char)* "]";
character: "\"" char "\"";
text: "\"" char+ "\"";
LITERAL: switch | character | text;

atom: "(" symbol ")" | ID | LITERAL;
multiple: atom "+";
option: atom "?";
star: atom "*";
factor: multiple | option | star | atom;
sequence: factor+;
junction: sequence ("|" sequence)+;
symbol: junction | sequence;

rule: ID ":" symbol ";";
start: rule+;

/* Whitespace is anything at or below a space. */
skip: ([\u0000-\u0040]+ | "/*" ([-)+-] | "*"+ [-)+-.0-])* "*"+ "/" | "//" [-\u0011\u0013-]*)+;
"""


def _meta_rules() -> dict[str, Symbol]:
    letter = Switch.of(("a", "z"), ("A", "Z"))
    ID = Sequence(letter, Star(Switch.of(("a", "z"), ("A", "Z"), ("0", "9"), "_")), name="ID")
    DIGIT = Switch.of(("0", "9"), name="DIGIT")

    escape = Sequence(
        Character("\\"),
        Junction(
            Switch.of("t", "n", "r", '"', "'", "-", "\\", "]"),
            Sequence(Character("u"), DIGIT, DIGIT, DIGIT, DIGIT),
        ),
        name="escape",
    )
    char = Junction(escape, Switch.excluding('"', "\\"), name="char")
    range_char = Junction(escape, Switch.excluding("-", "\\", "]"), name="range_char")

    switch = Junction(
        Text("[-]"),
        Sequence(
            Character("["),
            Option(Sequence(Character("-"), range_char)),
            Star(
                Junction(
                    Sequence(range_char, Character("-"), range_char),
                    Sequence(range_char, Character("-")),
                    range_char,
                )
            ),
            Character("]"),
        ),
        name="switch",
    )
    character = Sequence(Character('"'), char, Character('"'), name="character")
    text = Sequence(Character('"'), Multiple(char), Character('"'), name="text")
    LITERAL = Junction(switch, character, text, name="LITERAL")

    # `symbol` is the top of the expression grammar and `atom` needs it for
    # parentheses, so it has to be a forward reference.
    symbol_ref = ImplicitSymbol("symbol")
    atom = Junction(Sequence(Character("("), symbol_ref, Character(")")), ID, LITERAL, name="atom")
    multiple = Sequence(atom, Character("+"), name="multiple")
    option = Sequence(atom, Character("?"), name="option")
    star = Sequence(atom, Character("*"), name="star")
    factor = Junction(multiple, option, star, atom, name="factor")
    sequence = Multiple(factor, name="sequence")
    junction = Sequence(sequence, Multiple(Sequence(Character("|"), sequence)), name="junction")
    symbol = Junction(junction, sequence, name="symbol")
    symbol_ref.reference = symbol

    rule = Sequence(ID, Character(":"), symbol, Character(";"), name="rule")
    start = Multiple(rule, name="start")

    not_star = Switch.excluding("*")
    block_comment = Sequence(
        Text("/*"),
        Star(Junction(not_star, Sequence(Multiple(Character("*")), Switch.excluding("*", "/")))),
        Multiple(Character("*")),
        Character("/"),
    )
    line_comment = Sequence(Text("//"), Star(Switch.excluding("\n")))
    whitespace = Multiple(Switch.of((chr(0), " ")))
    skip = Multiple(Junction(whitespace, block_comment, line_comment), name="skip")

    rules = [
        ID,
        DIGIT,
        escape,
        char,
        range_char,
        switch,
        character,
        text,
        LITERAL,
        atom,
        multiple,
        option,
        star,
        factor,
        sequence,
        junction,
        symbol,
        rule,
        start,
        skip,
    ]
    return {r.name: r for r in rules}


META_RULES = _meta_rules()


@dataclasses.dataclass
class MetaState:
    """What the listeners know while a grammar text is being walked."""

    rules: dict[str, Symbol] = dataclasses.field(default_factory=dict)

    # Placeholders for rules that have been used but not yet defined.
    pending: dict[str, ImplicitSymbol] = dataclasses.field(default_factory=dict)

    def reference(self, name: str) -> Symbol:
        existing = self.rules.get(name)
        if existing is not None:
            return existing

        placeholder = self.pending.get(name)
        if placeholder is None:
            placeholder = ImplicitSymbol(name)
            self.pending[name] = placeholder
        return placeholder


_ESCAPES = {"t": "\t", "n": "\n", "r": "\r"}

_builder = Builder(META_RULES)
_builder.start("start")
_builder.skip("skip")


@_builder.sequence("escape")
def escape(token: SequenceToken, state: MetaState) -> str:
    which = token.junction_at(1)
    if which.ordinal == 0:
        letter = which.match.substring
        return _ESCAPES.get(letter, letter)

    digits = which.sequence().substring[1:]
    if any(d not in "01234567" for d in digits):
        raise token.error("Malformed escape value")
    return chr(int(digits, 8))


@_builder.junction("char")
def char(token: JunctionToken, state: MetaState) -> str:
    if token.ordinal == 0:
        return token.match.payload
    return token.substring


_builder.junction("range_char")(char)


@_builder.junction("switch")
def switch(token: JunctionToken, state: MetaState) -> Switch:
    if token.ordinal == 0:
        return AnyCharacter()

    body = token.sequence()
    lower = IntVector()
    upper = IntVector()

    up_to = body.option_at(1)
    if up_to.is_present:
        lower.push(0)
        upper.push(ord(up_to.sequence()[1].payload))

    for item in body.star_at(2).junctions():
        match item.ordinal:
            case 0:
                lo, hi = ord(item.sequence()[0].payload), ord(item.sequence()[2].payload)
                if lo > hi:
                    raise item.error("Character range is backwards")
            case 1:
                lo, hi = ord(item.sequence()[0].payload), MAX_CODE_POINT
            case _:
                lo = hi = ord(item.match.payload)

        lower.push(lo)
        upper.push(hi)

    return Switch(lower, upper)


@_builder.sequence("character")
def character(token: SequenceToken, state: MetaState) -> Character:
    return Character(token[1].payload)


@_builder.sequence("text")
def text(token: SequenceToken, state: MetaState) -> Text:
    return Text("".join(c.payload for c in token.multiple_at(1).matches))


@_builder.junction("atom")
def atom(token: JunctionToken, state: MetaState) -> Symbol:
    match token.ordinal:
        case 0:
            return token.sequence()[1].payload
        case 1:
            return state.reference(token.match.substring)
        case _:
            return token.match.payload


@_builder.sequence("multiple")
def multiple(token: SequenceToken, state: MetaState) -> Multiple:
    return Multiple(token[0].payload)


@_builder.sequence("option")
def option(token: SequenceToken, state: MetaState) -> Option:
    return Option(token[0].payload)


@_builder.sequence("star")
def star(token: SequenceToken, state: MetaState) -> Star:
    return Star(token[0].payload)


@_builder.multiple("sequence")
def sequence(token: MultipleToken, state: MetaState) -> Symbol:
    members = [factor.payload for factor in token.matches]
    if len(members) == 1:
        return members[0]
    return Sequence(*members)


@_builder.sequence("junction")
def junction(token: SequenceToken, state: MetaState) -> Junction:
    first = token[0].payload
    rest = [alternative[1].payload for alternative in token.multiple_at(1).sequences()]
    return Junction(first, *rest)


@_builder.sequence("rule")
def rule(token: SequenceToken, state: MetaState) -> Symbol:
    name = token[0].substring
    body = token[2].payload
    if name in state.rules:
        raise token.error(f"Rule '{name}' is defined more than once")
    if not body.anonymous:
        raise token.error("Delegation to another named symbol is forbidden")

    result = body.renamed(name)
    state.rules[name] = result

    placeholder = state.pending.pop(name, None)
    if placeholder is not None:
        placeholder.reference = result
    return result


@_builder.multiple("start")
def start(token: MultipleToken, state: MetaState) -> dict[str, Symbol]:
    if len(state.pending) > 0:
        names = sorted(state.pending)
        raise UndefinedRuleError(f"Undefined rules: {', '.join(names)}", names)
    return dict(state.rules)


METAGRAMMAR: Grammar = _builder.build()


def bootstrap(rules: typing.Mapping[str, Symbol]) -> Grammar:
    """Make a metagrammar out of some other set of rules, using the same
    listeners as the built-in one.

    Mostly useful for proving that `META_SOURCE` really does describe the
    notation: `bootstrap(compile_rules(META_SOURCE))` is a working metagrammar.
    """
    builder = Builder(rules)
    builder.start(METAGRAMMAR.start)
    builder.skip(METAGRAMMAR.skip)
    for name, listener in METAGRAMMAR.listeners.items():
        builder.listener(name, type(METAGRAMMAR.rules[name]))(listener)
    return builder.build()


def compile_rules(source: str, metagrammar: Grammar | None = None) -> dict[str, Symbol]:
    """Parse grammar text into a map from rule name to symbol."""
    if metagrammar is None:
        metagrammar = METAGRAMMAR
    return metagrammar.parse(source, MetaState())


def grammar(source: str) -> Builder:
    """Parse grammar text and return a `Builder` for the resulting rules.

    You still need to declare the start and skip rules (and add listeners)
    before you can `build()` a grammar out of it.
    """
    return Builder(compile_rules(source))
