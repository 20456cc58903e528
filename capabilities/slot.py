"""At-most-one holder with guarded take/put transitions."""

from typing import Generic, Optional, TypeVar

from core.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError

T = TypeVar("T")


class Slot(Generic[T]):
    """Holds zero or one value; a put never overwrites and a read never copies."""

    __slots__ = ("_name", "_value")

    def __init__(self, name: str) -> None:
        self._name = name
        self._value: Optional[T] = None

    @property
    def name(self) -> str:
        return self._name

    def is_occupied(self) -> bool:
        return self._value is not None

    def borrow(self) -> T:
        if self._value is None:
            raise NotFoundError(f"{self._name} slot is empty.")
        return self._value

    def take(self) -> T:
        value = self.borrow()
        self._value = None
        return value

    def put(self, value: T) -> None:
        if value is None:
            raise InvalidArgumentError(f"Nothing to store in {self._name} slot.")
        if self._value is not None:
            raise AlreadyExistsError(f"{self._name} slot is already occupied.")
        self._value = value

    def __repr__(self) -> str:
        state = "occupied" if self._value is not None else "empty"
        return f"Slot({self._name!r}, {state})"
