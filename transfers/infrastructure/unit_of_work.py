"""
Django implementation of UnitOfWork port.
"""
from typing import Awaitable, Callable, TypeVar

from core.infrastructure.database import async_transaction
from transfers.ports.unit_of_work import UnitOfWork

T = TypeVar("T")


class DjangoUnitOfWork(UnitOfWork):
    """Runs the work inside a single ``transaction.atomic()`` block."""

    async def run(self, work: Callable[[], Awaitable[T]]) -> T:
        return await async_transaction(work)
