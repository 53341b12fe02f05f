"""
Pending PIX order registry — keyed store of provisional orders awaiting payment.

Each entry owns one asyncio task that sleeps for the grace period (7 minutes by
default) and then hands the entry to the expiry callback.

Concurrency:
    All registry methods run on the event loop and contain no `await` between
    reading and writing the map, so upsert / cancel / fire-commit are mutually
    exclusive. A timer task "commits" to firing by removing its own entry from
    the map; from then on cancel() can no longer reach it. A timer cancelled
    before that point never fires.

Invariant:
    At most one live timer per order code. upsert() cancels the previous
    timer before installing the new one.
"""
import asyncio
import copy
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from domain.constants import DEFAULT_AMOUNT, UNKNOWN_CUSTOMER
from models import PendingOrderView

logger = logging.getLogger(__name__)


@dataclass
class PendingEntry:
    """One armed PIX order. The notification is a snapshot taken at arm time."""

    order_code: str
    notification: dict
    customer_name: str = UNKNOWN_CUSTOMER
    amount: Any = DEFAULT_AMOUNT
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    armed_at: float = field(default_factory=time.monotonic)
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    def remaining_ms(self, grace_period_seconds: float, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        elapsed = now - self.armed_at
        return max(0, int((grace_period_seconds - elapsed) * 1000))


ExpiryCallback = Callable[[PendingEntry], Awaitable[None]]
Sleep = Callable[[float], Awaitable[Any]]


class PendingRegistry:
    """
    Map of order code -> PendingEntry with one cancellable expiry timer per entry.

    Args:
        on_expire: Coroutine run when a timer fires, after the entry has been
            removed from the registry
        grace_period_seconds: Delay between arming and firing
        clock: Monotonic time source used for remaining-time reporting
        sleep: Delay coroutine used by the timers
    """

    def __init__(
        self,
        on_expire: ExpiryCallback,
        grace_period_seconds: float = 7 * 60,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self._on_expire = on_expire
        self.grace_period_seconds = grace_period_seconds
        self._clock = clock
        self._sleep = sleep
        self._entries: dict[str, PendingEntry] = {}
        # Strong refs to every timer task, including ones already firing
        self._tasks: set[asyncio.Task] = set()

    # ── Mutations ───────────────────────────────────────────────────

    def upsert(
        self,
        order_code: str,
        notification: dict,
        customer_name: str = UNKNOWN_CUSTOMER,
        amount: Any = DEFAULT_AMOUNT,
    ) -> bool:
        """
        Store (or replace) a pending order and arm a fresh timer.

        Any existing entry for the code is cancelled first, so the grace period
        always counts from the most recent upsert.

        Returns:
            True if an existing entry was replaced
        """
        replaced = self.cancel(order_code)

        entry = PendingEntry(
            order_code=order_code,
            notification=copy.deepcopy(notification),
            customer_name=customer_name,
            amount=amount,
            armed_at=self._clock(),
        )
        entry.task = asyncio.create_task(
            self._run_timer(entry), name=f"pix-timeout:{order_code}"
        )
        self._tasks.add(entry.task)
        entry.task.add_done_callback(self._tasks.discard)

        self._entries[order_code] = entry
        logger.debug(
            f"Armed PIX timer for {order_code} ({self.grace_period_seconds}s, replaced={replaced})"
        )
        return replaced

    def cancel(self, order_code: str) -> bool:
        """
        Cancel the timer for an order and remove it.

        Returns:
            True if an entry existed. An absent code is a no-op.
        """
        entry = self._entries.pop(order_code, None)
        if entry is None:
            return False
        if entry.task is not None:
            entry.task.cancel()
        logger.debug(f"Cancelled PIX timer for {order_code}")
        return True

    async def _run_timer(self, entry: PendingEntry) -> None:
        """Timer body: sleep, commit by removing this exact entry, then expire."""
        # Deadline counts from arm time, same as remaining_ms
        await self._sleep(max(0.0, entry.armed_at + self.grace_period_seconds - self._clock()))

        # Commit point. Only this arm instance may remove itself.
        if self._entries.get(entry.order_code) is not entry:
            return
        del self._entries[entry.order_code]

        try:
            await self._on_expire(entry)
        except Exception as e:
            logger.error(f"PIX timeout handler failed for {entry.order_code}: {e}", exc_info=True)

    async def shutdown(self) -> None:
        """Cancel every timer (pending and firing). Entries are dropped, not forwarded."""
        self._entries.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Pending registry shut down ({len(tasks)} timer(s) cancelled)")

    # ── Reads ───────────────────────────────────────────────────────

    def get(self, order_code: str) -> Optional[PendingEntry]:
        return self._entries.get(order_code)

    def __contains__(self, order_code: str) -> bool:
        return order_code in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def size(self) -> int:
        return len(self._entries)

    def snapshot(self) -> list[PendingOrderView]:
        """Point-in-time view of pending orders for /status."""
        now = self._clock()
        return [
            PendingOrderView(
                code=code,
                customer_name=entry.customer_name,
                amount=entry.amount,
                created_at=entry.created_at,
                remaining_time=entry.remaining_ms(self.grace_period_seconds, now),
            )
            for code, entry in self._entries.items()
        ]
