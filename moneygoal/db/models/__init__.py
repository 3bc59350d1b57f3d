"""
Domain-split SQLAlchemy models.

Exposes `Base`, `now_utc`, and all ORM classes from a single import path.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import User
from .goals import Goal
from .categories import Category, CategoryLearning
from .transactions import Transaction, TRANSACTION_SOURCES
from .settings import UserSettings
from .recurring import RecurringExpense
from .budgets import Budget
from .bills import BillReminder
from .chat import ChatMessage
from .insights import AIInsight
from .bank_accounts import BankAccount

__all__ = [
    # base
    "Base",
    "now_utc",
    # users
    "User",
    "UserSettings",
    # goals/transactions
    "Goal",
    "Transaction",
    "TRANSACTION_SOURCES",
    # categories
    "Category",
    "CategoryLearning",
    # planning
    "RecurringExpense",
    "Budget",
    "BillReminder",
    # ai
    "ChatMessage",
    "AIInsight",
    # integrations
    "BankAccount",
]
