from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional

from app.modules.ledger.models import Currency
from app.modules.ledger.schemas import (
    LedgerEntryCreate, LedgerEntryUpdate, LedgerEntryOut, LedgerTotals
)


class CotizacionCreate(LedgerEntryCreate):
    currency: Currency = Currency.USD


class CotizacionUpdate(LedgerEntryUpdate):
    currency: Optional[Currency] = None


class CotizacionOut(LedgerEntryOut):
    pass


class CurrencyTotals(LedgerTotals):
    currency: str


class CotizacionListResponse(BaseModel):
    entries: List[CotizacionOut]
    summary: List[CurrencyTotals]
    limit: int
    offset: int
    has_more: bool


class CotizacionSummary(BaseModel):
    by_currency: List[CurrencyTotals]
    total_entries: int
    net_usd: Decimal
    net_mxn: Decimal
