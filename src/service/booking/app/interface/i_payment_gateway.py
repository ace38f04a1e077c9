"""
Payment Gateway Interface

One gateway per payment method. Gateways report declines through
PaymentResult.success; an exception means the call itself failed.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import attrs


@attrs.define(frozen=True)
class PaymentResult:
    success: bool
    message: str
    transaction_id: Optional[str] = None


class IPaymentGateway(ABC):
    @abstractmethod
    async def pay(
        self, *, amount: int, currency: str, details: Mapping[str, Any]
    ) -> PaymentResult:
        """
        Charge the buyer

        Args:
            amount: Amount in the smallest currency unit
            currency: ISO currency code
            details: Method specific payment details (card number, account...)
        """
        pass

    @abstractmethod
    async def refund(self, *, transaction_id: str, amount: int) -> PaymentResult:
        pass
