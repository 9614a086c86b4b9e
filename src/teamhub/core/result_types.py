# TeamHub Chat - Real-Time Team Collaboration Backend
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""Ok/Err values returned by protocol handlers and store adapters.

Failures travel as values up to a single boundary (the socket handler or a
route) which decides how to report them.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, NoReturn, TypeVar

from attrs import frozen

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@frozen
class Ok(Generic[T]):
    """A successful outcome carrying ``value``."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value

    def unwrap_err(self) -> NoReturn:
        raise ValueError(f"Expected an error, got Ok({self.value!r})")

    def map(self, func: Callable[[T], U]) -> "Ok[U]":
        return Ok(func(self.value))


@frozen
class Err(Generic[E]):
    """A failed outcome carrying ``error``."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err value: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, func: Callable[[Any], Any]) -> "Err[E]":
        # Errors pass through untouched.
        return self


if TYPE_CHECKING:
    Result = Ok[T] | Err[E]
else:

    class Result(Generic[T, E]):
        """Subscriptable at runtime; ``Result.ok``/``Result.err`` build values."""

        @staticmethod
        def ok(value: T) -> Ok[T]:
            return Ok(value)

        @staticmethod
        def err(error: E) -> Err[E]:
            return Err(error)

        def __class_getitem__(cls, params: Any) -> Any:
            return Ok[Any] | Err[Any]
