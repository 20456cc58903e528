"""Caller identity collaborator used for ownership checks."""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, Protocol

from .errors import InvalidArgumentError, PermissionDeniedError
from .models import OwnerId


class CallerIdentity(Protocol):
    def current_caller(self) -> OwnerId:
        ...


class ContextCallerIdentity:
    """Caller identity scoped to the current thread or task context."""

    def __init__(self) -> None:
        self._caller: ContextVar[Optional[OwnerId]] = ContextVar("ledger_caller", default=None)

    def current_caller(self) -> OwnerId:
        caller = self._caller.get()
        if caller is None:
            raise PermissionDeniedError("No verified caller in context.")
        return caller

    @contextmanager
    def acting_as(self, caller: OwnerId) -> Iterator[OwnerId]:
        if not caller:
            raise InvalidArgumentError("Caller identity is required.")
        token = self._caller.set(caller)
        try:
            yield caller
        finally:
            self._caller.reset(token)


def require_caller(identity: CallerIdentity, owner: OwnerId) -> None:
    """Fail unless the verified caller is ``owner``."""

    if identity.current_caller() != owner:
        raise PermissionDeniedError("Caller is not the verified owner.")
