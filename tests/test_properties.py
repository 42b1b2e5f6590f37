from hypothesis import assume, given
from hypothesis.strategies import integers, lists, sampled_from, text

import bootgram
from bootgram import (
    NOTHING,
    ZERO_LENGTH,
    Character,
    Junction,
    Multiple,
    Option,
    Sequence,
    Star,
    StringCharStream,
    Text,
)

WORDS = bootgram.grammar(
    """
    words: WORD+;
    WORD: [a-z]+;
    skip: [ ]*;
    """
)
WORDS.start("words")
WORDS.skip("skip")
WORD_GRAMMAR = WORDS.build()

small_text = text(alphabet="abxy ", max_size=12)


@given(
    lists(text(alphabet="abcxyz", min_size=1, max_size=6), min_size=1, max_size=6),
    lists(integers(min_value=1, max_value=3), min_size=7, max_size=7),
)
def test_leaves_reproduce_input_without_skip(words, gaps):
    source = " " * gaps[0]
    for word, gap in zip(words, gaps[1:]):
        source += word + " " * gap

    tree = WORD_GRAMMAR.parse_tree(source)
    assert "".join(leaf.substring for leaf in tree.leaves()) == "".join(words)


@given(small_text, text(alphabet="abxy", min_size=1, max_size=3))
def test_option_and_star_never_fail(source, literal):
    for symbol in (Option(Text(literal)), Star(Text(literal))):
        stream = StringCharStream(source)
        token = symbol.match(stream, ZERO_LENGTH)
        assert token is not NOTHING
        assert source.startswith(token.substring)
        assert stream.position == len(token.substring)


@given(text(alphabet="ab", min_size=1, max_size=10), integers(min_value=1), integers(min_value=1))
def test_junction_takes_first_match(source, i, j):
    first = source[: 1 + i % len(source)]
    second = source[: 1 + j % len(source)]
    token = Junction(Text(first), Text(second)).match(StringCharStream(source), ZERO_LENGTH)
    assert token.ordinal == 0
    assert token.substring == first


@given(small_text, text(alphabet="abxy", min_size=1, max_size=4), sampled_from("abxy"))
def test_failed_sequence_leaves_no_trace(source, prefix, last):
    assume(not source.startswith(prefix + last))
    stream = StringCharStream(source)
    failing = Sequence(Text(prefix), Character(last))
    assert failing.match(stream, ZERO_LENGTH) is NOTHING
    assert stream.position == 0
    assert stream.depth == 0

    # The same position still works for something that does match.
    anything = Star(Junction(Character("a"), Character("b"), Character("x"), Character("y"), Character(" ")))
    token = anything.match(stream, ZERO_LENGTH)
    assert token.substring == source


@given(text(alphabet="xy", max_size=10))
def test_empty_repetitions_terminate(source):
    maybe_x = Multiple(Option(Character("x")))
    stream = StringCharStream(source)
    token = maybe_x.match(stream, ZERO_LENGTH)

    xs = len(source) - len(source.lstrip("x"))
    assert token.substring == "x" * xs
    assert len(token.children) == xs + 1
    assert token.children[-1].substring == ""
