"""Current-user routes."""

from fastapi import APIRouter, Depends

from ..middleware.auth import get_current_user
from ..models.catalog import CreditBalance, UserRecord
from ..services.container import Services, get_services

router = APIRouter(tags=["Users"])


@router.get("/users/me/credits", response_model=CreditBalance, response_model_by_alias=True)
async def get_my_credits(
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Current credit balance of the signed-in user."""
    balance = await services.users.get_credit_balance(user.id)
    return CreditBalance(user_id=user.id, credit_balance=balance if balance is not None else 0.0)
