"""Exceptions raised by the grammar engine.

There are two broad families here, and it matters which one you get:

- `ConfigurationError` means the *grammar* is wrong: a start rule that names
  nothing, a listener registered twice, a forward reference that never got
  defined. These are programming mistakes and show up when you build the
  grammar, not when you feed it input.

- `ParseError` means the *input* is wrong. These are expected, carry a
  position, and are the only thing `Grammar.parse_or_none` turns into `None`.
"""

import typing


class GrammarError(Exception):
    """Base class for everything this library raises on purpose."""

    pass


class ConfigurationError(GrammarError):
    pass


class UndefinedRuleError(ConfigurationError, KeyError):
    """A rule id was referenced but never defined."""

    def __init__(self, message: str, names: typing.Iterable[str] = ()):
        super().__init__(message)
        self.message = message
        self.names = tuple(names)

    def __str__(self) -> str:
        # KeyError likes to repr() its argument, which is not what we want.
        return self.message


class ReassignmentError(ConfigurationError):
    """Something that may only be set once was set a second time."""

    pass


class UnassignedError(ConfigurationError):
    """Something that must be set before use was read while still unset."""

    pass


class RuleTypeError(ConfigurationError, TypeError):
    """A listener asserted a rule variant that the rule does not have."""

    pass


class ParseError(GrammarError):
    """The input does not match the grammar."""

    message: str
    position: int
    location: tuple[int, int] | None

    def __init__(
        self,
        message: str,
        position: int = 0,
        location: tuple[int, int] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.location = location

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        line, column = self.location
        return f"{line}:{column}: {self.message}"


class SemanticError(ParseError):
    """Raised by listeners when a construct parses but makes no sense.

    You generally want `Token.error` to make one of these, so that the error
    knows where it happened.
    """

    pass


class TokenMismatchError(GrammarError, TypeError):
    """A typed accessor on a token found a different kind of token than the
    one it was asked for.
    """

    pass
