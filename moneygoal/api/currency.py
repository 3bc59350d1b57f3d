"""
Exchange rate lookup and amount conversion.
"""
from fastapi import APIRouter, Depends, Query

from moneygoal.db import schemas
from moneygoal.api.deps import get_current_user_context, get_rates
from moneygoal.services.currency_service import ExchangeRateService

router = APIRouter(prefix="/currency", tags=["currency"])


@router.get("/rates", response_model=schemas.ExchangeRates)
def get_rates_endpoint(
    base: str = Query(default="USD", min_length=3, max_length=3),
    rates: ExchangeRateService = Depends(get_rates),
    user_context=Depends(get_current_user_context),
):
    base = base.upper()
    return {"base": base, "rates": rates.get_exchange_rates(base)}


@router.get("/convert", response_model=schemas.Conversion)
def convert_endpoint(
    amount: int = Query(..., ge=0),
    from_currency: str = Query(..., alias="from", min_length=3, max_length=3),
    to_currency: str = Query(..., alias="to", min_length=3, max_length=3),
    rates: ExchangeRateService = Depends(get_rates),
    user_context=Depends(get_current_user_context),
):
    from_currency, to_currency = from_currency.upper(), to_currency.upper()
    formatted = rates.format_with_conversion(amount, from_currency, to_currency)
    return {
        "amount": amount,
        "from_currency": from_currency,
        "to_currency": to_currency,
        "converted_amount": rates.convert_currency(amount, from_currency, to_currency),
        **formatted,
    }
