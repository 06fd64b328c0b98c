"""Human-facing order numbers: ``ORD-<epoch ms>-<sequence>``.

The sequence comes from the provider's atomic counter, so two concurrent
checkouts can never draw the same value. The unique index on
``order_number`` stays in place as a backstop.
"""

import time

from protean.utils.globals import current_domain

PREFIX = "ORD"
SEQUENCE_NAME = "order_number"


def format_order_number(epoch_ms: int, sequence: int) -> str:
    return f"{PREFIX}-{epoch_ms}-{sequence:04d}"


class OrderNumberGenerator:
    def __init__(self, provider=None, clock=time.time):
        self.provider = provider
        self.clock = clock

    def next(self) -> str:
        provider = self.provider or current_domain.providers["default"]
        sequence = provider.next_sequence(SEQUENCE_NAME)
        return format_order_number(int(self.clock() * 1000), sequence)
