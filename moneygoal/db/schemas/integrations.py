"""Request/response models for bank sync, CSV import, Plaid, WhatsApp and currency."""
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class WiseTokenRequest(BaseModel):
    api_token: str = Field(min_length=1)


class WiseTokenResponse(BaseModel):
    success: bool = True
    profile_count: int


class WiseBalance(BaseModel):
    currency: str
    amount: float
    type: Optional[str] = None


class SyncRequest(BaseModel):
    goal_id: uuid.UUID
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SyncResult(BaseModel):
    success: bool = True
    imported_count: int
    total_transactions: int


class CsvImportRequest(BaseModel):
    goal_id: uuid.UUID
    csv_content: str = Field(min_length=1)


class CsvImportResult(BaseModel):
    success: bool = True
    imported_count: int
    skipped_count: int
    total_transactions: int


class ClearResult(BaseModel):
    success: bool = True
    deleted_count: int


class PlaidLinkToken(BaseModel):
    link_token: str


class PlaidExchangeRequest(BaseModel):
    public_token: str = Field(min_length=1)
    institution_name: Optional[str] = None
    institution_id: Optional[str] = None


class PlaidSyncRequest(BaseModel):
    account_id: uuid.UUID
    goal_id: uuid.UUID
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class BankAccount(BaseModel):
    id: uuid.UUID
    institution_name: Optional[str] = None
    institution_id: Optional[str] = None
    account_ids: List[str] = Field(default_factory=list)
    is_active: bool
    last_sync: Optional[datetime] = None
    created_date: datetime
    model_config = ConfigDict(from_attributes=True)


class PhoneLinkRequest(BaseModel):
    phone_number: str = Field(min_length=8, max_length=32)


class PhoneStatus(BaseModel):
    linked: bool
    phone_number: Optional[str] = None


class ConvertedBalance(BaseModel):
    currency: str
    original_amount: int
    converted_amount: int
    conversion_rate: float


class ExchangeRates(BaseModel):
    base: str
    rates: Dict[str, float]


class Conversion(BaseModel):
    amount: int
    from_currency: str
    to_currency: str
    converted_amount: int
    original: str
    converted: str
    rate: str
