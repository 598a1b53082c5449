"""Address resolver — decides which shipping address an order uses.

A new address is saved with a bounded retry: a fixed number of attempts with
a fixed pause between them, stopping at the first success. The first address
an owner saves always becomes their default.
"""

import time
from collections.abc import Callable

from checkout.address.address import ShippingAddress, select_default, validate_draft
from checkout.address.store.port import AddressStore, AddressStoreError
from checkout.domain import logger
from checkout.errors import AddressSaveError

DEFAULT_ATTEMPTS = 3
DEFAULT_DELAY_SECONDS = 1.0


class AddressResolver:
    def __init__(
        self,
        store: AddressStore,
        attempts: int = DEFAULT_ATTEMPTS,
        delay: float = DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.store = store
        self.attempts = attempts
        self.delay = delay
        self._sleep = sleep

    def list_addresses(self, owner_id: str) -> list[ShippingAddress]:
        return self.store.list(owner_id)

    def save_with_retry(self, owner_id: str, draft: ShippingAddress, is_first_address_for_owner: bool) -> str:
        """Persist a validated draft and return the new address id.

        Raises:
            ValidationError: the draft is missing required fields (no attempt made).
            AddressSaveError: every attempt failed; carries the last failure.
        """
        validate_draft(draft)
        address = draft.with_default(True) if is_first_address_for_owner else draft

        last_error: AddressStoreError | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                address_id = self.store.create(owner_id, address)
            except AddressStoreError as exc:
                last_error = exc
                logger.warning(
                    "Saving shipping address failed",
                    owner_id=owner_id,
                    attempt=attempt,
                    attempts_left=self.attempts - attempt,
                    error=str(exc),
                )
                if attempt < self.attempts:
                    self._sleep(self.delay)
                continue

            logger.info(
                "Shipping address saved",
                owner_id=owner_id,
                address_id=address_id,
                attempt=attempt,
                is_default=address.is_default,
            )
            return address_id

        raise AddressSaveError(
            str(last_error) or "Failed to save address",
            attempts=self.attempts,
            cause=last_error,
        )

    @staticmethod
    def select_default(addresses) -> int | None:
        return select_default(addresses)
