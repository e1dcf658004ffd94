"""Per-key mutual exclusion for carts, products and orders.

Writes to one product's stock counter, one buyer's cart or one order's status
are serialized by locking that key alone; unrelated keys proceed in
parallel. Keys are always acquired in sorted order, so two callers asking
for overlapping key sets cannot deadlock. Callers that need a cart and its
products take the cart lock first (``cart:`` sorts before ``product:``)
and never call the payment provider while holding any of them.
"""

import threading
from contextlib import contextmanager


def cart_key(buyer_id) -> str:
    return f"cart:{buyer_id}"


def product_key(product_id) -> str:
    return f"product:{product_id}"


def order_key(order_id) -> str:
    return f"order:{order_id}"


class KeyedLocks:
    """A registry of ``threading.Lock`` objects created on demand per key.

    An entry lives only while some caller holds or waits on its key.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def is_held(self, key: str) -> bool:
        with self._guard:
            entry = self._locks.get(key)
            return entry is not None and entry[0].locked()

    @contextmanager
    def holding(self, *keys: str):
        ordered = sorted(set(keys))
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


locks = KeyedLocks()
