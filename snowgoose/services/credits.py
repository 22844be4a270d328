"""Credit checks and usage-based deductions."""

import logging
from typing import Optional

from ..db.repositories import CreditRepository, UserRepository
from ..errors import ConfigurationError, CreditDeductionError, InsufficientCredits
from ..models.common import UsageSummary

logger = logging.getLogger(__name__)


class CreditService:
    """Converts provider dollar cost to credits and charges users.

    The pre-flight check only requires a positive balance; it does not
    reserve the cost of the request, so one turn may overdraw slightly.
    """

    def __init__(
        self,
        users: UserRepository,
        credits: CreditRepository,
        dollars_per_credit: Optional[float],
        image_surcharge: float = 0.25,
    ):
        self.users = users
        self.credits = credits
        self.dollars_per_credit = dollars_per_credit
        self.image_surcharge = image_surcharge

    def require_ratio(self) -> float:
        """Return the dollars-per-credit ratio or raise ConfigurationError."""
        if not self.dollars_per_credit or self.dollars_per_credit <= 0:
            raise ConfigurationError("DOLLARS_PER_CREDIT must be set to a positive number")
        return self.dollars_per_credit

    async def check_balance(self, user_id: int) -> float:
        """Raise InsufficientCredits unless the balance is strictly positive."""
        balance = await self.users.get_credit_balance(user_id)
        if balance is None or balance <= 0:
            logger.warning(f"User {user_id} has no credits (balance={balance})")
            raise InsufficientCredits(f"User {user_id} balance is {balance}")
        return balance

    def credits_for_usage(self, usage: UsageSummary) -> float:
        """Credits owed for one response, including the image surcharge."""
        total_cost = usage.total_cost
        if usage.did_generate_image:
            total_cost += self.image_surcharge
        return total_cost / self.require_ratio()

    async def deduct(self, user_id: int, amount: float, source: str = "chat") -> float:
        """Atomically deduct ``amount`` credits. Returns the amount deducted."""
        try:
            balance = await self.credits.deduct_credits(user_id, amount, source)
        except Exception as e:
            raise CreditDeductionError(
                f"Failed to deduct {amount:.4f} credits from user {user_id}: {e}"
            ) from e

        logger.info(f"Deducted {amount:.4f} credits from user {user_id}, balance now {balance:.4f}")
        return amount
