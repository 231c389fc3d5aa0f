"""
Database utilities and transaction management.
"""

from typing import Awaitable, Callable, TypeVar

from asgiref.sync import async_to_sync, sync_to_async
from django.db import transaction

T = TypeVar("T")


async def async_transaction(work: Callable[[], Awaitable[T]]) -> T:
    """
    Run a coroutine function inside one database transaction.

    The atomic block is opened on asgiref's thread-sensitive thread and
    the work is driven from there, so every ``sync_to_async`` repository
    call it makes joins the block. An exception rolls all of them back.

    Usage:
        async def work():
            # Database operations
            ...

        result = await async_transaction(work)
    """

    def atomic_block() -> T:
        with transaction.atomic():
            return async_to_sync(work)()

    return await sync_to_async(atomic_block)()
