"""
Cooperative cancellation tokens.

A token is a one-shot flag with a reason. Work that supports cancellation
either checks ``cancelled`` at its own checkpoints or awaits ``wait()``
alongside the operation it may abort. Tokens can be linked to a parent so
that a caller-level token reaches every per-request token created under it.
"""

import asyncio
from typing import Callable, Optional

from ai_tagger.models.enums import CancelReason


class CancellationToken:
    """
    One-shot cancellation signal.

    Not thread-safe: tokens live on a single event loop, like everything
    else in the engine.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._event = asyncio.Event()
        self._reason: Optional[CancelReason] = None
        self._callbacks: list[Callable[[CancelReason], None]] = []
        self._parent = parent

        if parent is not None:
            if parent.cancelled:
                self.cancel(parent.reason or CancelReason.CALLER)
            else:
                parent.add_callback(self.cancel)

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> Optional[CancelReason]:
        return self._reason

    def cancel(self, reason: CancelReason = CancelReason.CALLER) -> None:
        """Fire the token. Later calls are ignored (the first reason sticks)."""
        if self._reason is not None:
            return
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def add_callback(self, callback: Callable[[CancelReason], None]) -> None:
        """Run ``callback(reason)`` when the token fires (immediately if it already has)."""
        if self._reason is not None:
            callback(self._reason)
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[CancelReason], None]) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def detach(self) -> None:
        """Unlink from the parent so a long-lived parent does not accumulate callbacks."""
        if self._parent is not None:
            self._parent.remove_callback(self.cancel)
            self._parent = None

    async def wait(self) -> CancelReason:
        """Suspend until the token fires and return the reason."""
        await self._event.wait()
        assert self._reason is not None
        return self._reason

    def __repr__(self) -> str:
        state = self._reason.value if self._reason else "active"
        return f"CancellationToken({state})"
