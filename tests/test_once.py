import pytest

from bootgram import ParseError, ReassignmentError, UnassignedError, WriteOnce


class Holder:
    value = WriteOnce()
    other = WriteOnce("The other thing")


def test_write_once():
    h = Holder()
    assert not Holder.value.is_set(h)
    with pytest.raises(UnassignedError, match="value has not been assigned"):
        h.value

    h.value = 12
    assert h.value == 12
    assert Holder.value.is_set(h)
    with pytest.raises(ReassignmentError):
        h.value = 13
    assert h.value == 12


def test_cells_are_per_instance():
    a, b = Holder(), Holder()
    a.other = "a"
    b.other = "b"
    assert (a.other, b.other) == ("a", "b")
    with pytest.raises(ReassignmentError, match="The other thing"):
        a.other = "c"


def test_parse_error_formatting():
    assert str(ParseError("nope")) == "nope"
    assert str(ParseError("nope", 10, (2, 4))) == "2:4: nope"
