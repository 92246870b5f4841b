"""Interrupt controller — delivers disk completions to the driver.

When the disk finishes a burst it cannot hand the process straight back
to the ready queue: it raises an **interrupt request** (IRQ) instead,
and the driver services pending IRQs at a fixed point in each tick.
That keeps every state change inside the tick's phase order.

Key concepts:
    - **Vector** — a numbered slot with one handler.  The disk uses
      ``VECTOR_DISK``.
    - **IRQ** — a pending request carrying a payload (the process whose
      I/O finished).  Requests are serviced in the order raised.

Like the rest of the simulation, nothing here preempts Python code —
``service_pending()`` is called explicitly by the driver.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

VECTOR_DISK = 16


@dataclass(frozen=True)
class InterruptRequest:
    """A pending interrupt waiting to be serviced."""

    vector: int
    data: object = None


@dataclass
class _VectorEntry:
    """Internal bookkeeping for a registered vector."""

    handler: Callable[[InterruptRequest], None]
    pending: deque[InterruptRequest] = field(
        default_factory=lambda: deque[InterruptRequest](),
    )


class InterruptController:
    """Manage interrupt vectors, their handlers, and pending IRQs."""

    def __init__(self) -> None:
        """Create a controller with no registered vectors."""
        self._vectors: dict[int, _VectorEntry] = {}
        self._total_serviced = 0

    @property
    def total_serviced(self) -> int:
        """Return the total number of interrupts serviced."""
        return self._total_serviced

    def register(self, vector: int, handler: Callable[[InterruptRequest], None]) -> None:
        """Attach *handler* to a new vector.

        Raises:
            ValueError: If the vector number is already registered.

        """
        if vector in self._vectors:
            msg = f"Vector {vector} already registered"
            raise ValueError(msg)
        self._vectors[vector] = _VectorEntry(handler=handler)

    def raise_interrupt(self, vector: int, *, data: object = None) -> None:
        """Queue an interrupt request on *vector*.

        Raises:
            KeyError: If the vector is not registered.

        """
        entry = self._vectors.get(vector)
        if entry is None:
            msg = f"Vector {vector} not registered"
            raise KeyError(msg)
        entry.pending.append(InterruptRequest(vector=vector, data=data))

    def service_pending(self) -> int:
        """Run the handler for every pending IRQ, lowest vector first.

        Returns:
            The number of interrupts serviced in this call.

        """
        serviced = 0
        for number in sorted(self._vectors):
            entry = self._vectors[number]
            while entry.pending:
                entry.handler(entry.pending.popleft())
                serviced += 1
        self._total_serviced += serviced
        return serviced

    def pending_count(self, vector: int) -> int:
        """Return the number of IRQs waiting on *vector*.

        Raises:
            KeyError: If the vector is not registered.

        """
        entry = self._vectors.get(vector)
        if entry is None:
            msg = f"Vector {vector} not registered"
            raise KeyError(msg)
        return len(entry.pending)
