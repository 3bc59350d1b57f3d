"""
Domain-split Pydantic schemas.

Re-exports every request/response model so callers can use
`from moneygoal.db import schemas`.
"""

from .users import User, UserBase, RegisterRequest, LoginRequest, AuthResponse
from .goals import GoalCreate, GoalUpdate, Goal
from .transactions import TransactionCreate, TransactionUpdate, Transaction
from .categories import (
    CategoryCreate,
    CategoryUpdate,
    Category,
    CategorySuggestRequest,
    CategorySuggestion,
    LearnRequest,
    LearnedSuggestion,
    CategoryLearning,
)
from .settings import SettingsCreate, SettingsUpdate, Settings
from .recurring import RecurringExpenseCreate, RecurringExpenseUpdate, RecurringExpense
from .budgets import BudgetCreate, BudgetUpdate, Budget, BudgetStatusItem
from .bills import (
    BillReminderCreate,
    BillReminderUpdate,
    BillReminder,
    UpcomingBill,
    MarkPaidRequest,
    MarkPaidResponse,
)
from .chat import ChatSendRequest, ChatSendResponse, ChatMessage, ChatWelcome
from .insights import AIInsight, DataAvailability
from .integrations import (
    WiseTokenRequest,
    WiseTokenResponse,
    WiseBalance,
    SyncRequest,
    SyncResult,
    CsvImportRequest,
    CsvImportResult,
    ClearResult,
    PlaidLinkToken,
    PlaidExchangeRequest,
    PlaidSyncRequest,
    BankAccount,
    PhoneLinkRequest,
    PhoneStatus,
    ConvertedBalance,
    ExchangeRates,
    Conversion,
)
