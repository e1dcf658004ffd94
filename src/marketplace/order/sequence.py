"""Monotonic order numbers.

Order ids are opaque UUIDs; buyers and sellers refer to orders by a short
number that increases with every placement. The sequence is seeded from the
highest number already in the ledger the first time it is used in a
process.
"""

import threading

from protean.utils.globals import current_domain

from marketplace.order.order import Order


class OrderNumberSequence:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last: int | None = None

    def _seed(self) -> int:
        repo = current_domain.repository_for(Order)
        latest = repo._dao.query.order_by("-number").limit(1).all().items
        return latest[0].number if latest else 0

    def next(self) -> int:
        with self._lock:
            if self._last is None:
                self._last = self._seed()
            self._last += 1
            return self._last

    def reset(self) -> None:
        with self._lock:
            self._last = None


order_numbers = OrderNumberSequence()
