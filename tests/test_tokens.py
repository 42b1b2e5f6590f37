import pytest

from bootgram import (
    NOTHING,
    Character,
    CharacterToken,
    Junction,
    JunctionToken,
    Multiple,
    Option,
    ReassignmentError,
    SemanticError,
    Sequence,
    SequenceToken,
    Star,
    StringCharStream,
    Switch,
    TextToken,
    Text,
    TokenMismatchError,
    ZERO_LENGTH,
)


def tree(symbol, text):
    token = symbol.match(StringCharStream(text), ZERO_LENGTH)
    assert token is not NOTHING
    return token


PAIR = Sequence(
    Junction(Text("let"), Text("var"), name="keyword"),
    Character(" "),
    Multiple(Switch.of(("a", "z")), name="word"),
    Option(Character(";")),
    name="pair",
)


def test_typed_accessors():
    token = tree(PAIR, "var xyz;")
    assert isinstance(token, SequenceToken)
    assert len(token) == 4

    keyword = token.junction_at(0)
    assert keyword.ordinal == 1
    assert keyword.text().substring == "var"

    assert token.character_at(1).substring == " "
    assert [s.substring for s in token.multiple_at(2).switches()] == ["x", "y", "z"]
    assert token.option_at(3).is_present
    assert token.option_at(3).character().substring == ";"


def test_accessor_mismatch_names_both_kinds():
    token = tree(PAIR, "let ab")
    with pytest.raises(TokenMismatchError) as e:
        token.sequence_at(0)
    assert "SequenceToken" in str(e.value)
    assert "JunctionToken" in str(e.value)

    with pytest.raises(TokenMismatchError):
        token.multiple_at(2).texts()

    with pytest.raises(TokenMismatchError):
        token.at(9, CharacterToken)

    # An absent option has no match to hand out.
    with pytest.raises(TokenMismatchError):
        token.option_at(3).match


def test_mismatch_is_a_type_error():
    token = tree(PAIR, "let ab")
    with pytest.raises(TypeError):
        token.star_at(1)


def test_narrow():
    token = tree(PAIR, "let ab")
    assert token.narrow(SequenceToken) is token
    with pytest.raises(TokenMismatchError):
        token.narrow(TextToken)


def test_names_come_from_rules():
    token = tree(PAIR, "let ab")
    assert token.name == "pair"
    assert token[0].name == "keyword"
    assert token[2].name == "word"
    assert token[1].name.startswith("_")


def test_default_payloads():
    token = tree(PAIR, "let ab")
    result = token.walk({})
    # Sequence: list of children. Junction: its only child's. Literals: None.
    assert result == [None, None, [None, None], None]


def test_walk_is_post_order():
    visited = []

    def word(token, state):
        visited.append(token.name)
        return token.substring.upper()

    def keyword(token, state):
        visited.append(token.name)
        return token.substring

    def pair(token, state):
        visited.append(token.name)
        state.append((token[0].payload, token[2].payload))
        return token[2].payload

    state = []
    token = tree(PAIR, "let ab;")
    result = token.walk({"word": word, "keyword": keyword, "pair": pair}, state)
    assert result == "AB"
    assert visited == ["keyword", "word", "pair"]
    assert state == [("let", "AB")]
    assert token.payload == "AB"


def test_payload_is_write_once():
    token = tree(PAIR, "let ab")
    token.walk({})
    with pytest.raises(ReassignmentError):
        token.payload = "again"


def test_star_token_repeats():
    token = tree(Star(Sequence(Character("a"), Character("b"))), "ababa")
    assert token.is_present
    assert len(token.sequences()) == 2
    assert token.walk({}) == [[None, None], [None, None]]


def test_error_quotes_the_token():
    token = tree(PAIR, "let ab")
    error = token.multiple_at(2).error("Not a word I know")
    assert isinstance(error, SemanticError)
    assert error.message == "Not a word I know (in 'ab')"
    assert error.position == 4


def test_leaves_reproduce_the_input():
    token = tree(PAIR, "var xyz;")
    assert "".join(leaf.substring for leaf in token.leaves()) == "var xyz;"


def test_format():
    token = tree(Sequence(Character("a"), Option(Character("b")), name="ab"), "a")
    assert token.format_lines() == [
        "ab Sequence [0, 1)",
        f"  {token[0].name} Character:'a' [0, 1)",
        f"  {token[1].name} Option:'' [1, 1)",
    ]
    assert token.format(ignore_empty=True) == "\n".join(
        [
            "ab Sequence [0, 1)",
            f"  {token[0].name} Character:'a' [0, 1)",
        ]
    )


def test_junction_token_wraps_one_child():
    token = tree(Junction(Character("a"), Character("b")), "b")
    assert isinstance(token, JunctionToken)
    assert token.ordinal == 1
    assert token.match.substring == "b"
    assert token.one(CharacterToken).substring == "b"
