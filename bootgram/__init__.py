"""A small, self-hosting grammar engine.

Write a grammar as text, compile it with `grammar()`, tell the resulting
`Builder` which rules are the start and the skip rules, attach listeners to
compute values, and `build()` a `Grammar` that parses strings (or files) with
backtracking recursive descent.

The grammar notation is itself described by a grammar (see `bootgram.meta`),
which is how the text gets compiled in the first place.
"""

from .errors import (
    ConfigurationError,
    GrammarError,
    ParseError,
    ReassignmentError,
    RuleTypeError,
    SemanticError,
    TokenMismatchError,
    UnassignedError,
    UndefinedRuleError,
)
from .intvector import IntVector
from .meta import META_SOURCE, METAGRAMMAR, bootstrap, compile_rules, grammar
from .once import WriteOnce
from .runtime import Builder, Grammar
from .stream import CharStream, FileCharStream, StringCharStream
from .symbols import (
    ZERO_LENGTH,
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
    ZeroLengthSymbol,
)
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
