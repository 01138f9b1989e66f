"""Process-wide memo for one-shot async resolutions."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SharedResolution(Generic[T]):
    """Resolve a value at most once and share the pending work between callers.

    Callers arriving while the first resolution is still running await the same
    task instead of starting their own. A failed resolution is dropped so the
    next caller starts over; a successful one (``None`` included) is kept for
    the life of the process.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._resolved = False
        self._value: Optional[T] = None
        self._task: Optional["asyncio.Task[T]"] = None

    @property
    def resolved(self) -> bool:
        return self._resolved

    async def get(self) -> T:
        if self._resolved:
            return self._value  # type: ignore[return-value]
        if self._task is None or self._task.get_loop() is not asyncio.get_running_loop():
            self._task = asyncio.ensure_future(self._resolve())
        return await asyncio.shield(self._task)

    async def _resolve(self) -> T:
        try:
            value = await self._factory()
        except BaseException:
            self._task = None
            raise
        self._value = value
        self._resolved = True
        self._task = None
        return value
