import typing

from .errors import ReassignmentError, UnassignedError


class WriteOnce:
    """An attribute that can be assigned exactly once.

    Reading it before it has been assigned raises `UnassignedError`; assigning
    it a second time raises `ReassignmentError`. Use it as a class attribute:

        class Thing:
            value = WriteOnce()

    The value lives in the instance `__dict__` under the attribute name, so
    classes that use this must not use `__slots__`.
    """

    name: str

    def __init__(self, what: str | None = None):
        self.what = what
        self.name = ""

    def __set_name__(self, owner, name: str):
        self.name = name
        if self.what is None:
            self.what = name

    def __get__(self, instance, owner=None) -> typing.Any:
        if instance is None:
            return self
        try:
            return instance.__dict__[self.name]
        except KeyError:
            raise UnassignedError(f"{self.what} has not been assigned") from None

    def __set__(self, instance, value: typing.Any):
        if self.name in instance.__dict__:
            raise ReassignmentError(f"{self.what} has already been assigned")
        instance.__dict__[self.name] = value

    def is_set(self, instance) -> bool:
        return self.name in instance.__dict__
