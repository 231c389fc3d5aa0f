"""
Unit of work port.

Groups repository calls that must be applied together.
"""
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class UnitOfWork(ABC):
    """
    Abstract all-or-nothing boundary around repository writes.
    """

    @abstractmethod
    async def run(self, work: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``work`` so that either all of its writes persist or none do.

        Args:
            work: Coroutine function making the repository calls

        Returns:
            Whatever ``work`` returns

        Raises:
            Any exception raised by ``work``, after rolling back
        """
        pass
