"""
Bank statement CSV parsers and importer.

Supports Nubank exports (`date,description,amount` with Brazilian number
formatting) and Wise activity exports (column lookup by header name).
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.services.currency_service import round_half_up

logger = logging.getLogger(__name__)

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
)


@dataclass
class ParsedRow:
    date: str
    description: str
    amount: float
    currency: str
    reference: Optional[str] = None


def parse_date(value: str) -> Optional[datetime]:
    text = (value or "").strip()
    if not text:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text[:19], fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_brazilian_amount(raw: str) -> Optional[float]:
    cleaned = raw.replace("R$", "").replace(" ", "").replace(" ", "").strip()
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    try:
        return float(cleaned)
    except ValueError:
        return None


def _rows(csv_content: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(csv_content.strip()), skipinitialspace=True)
    return [[cell.strip() for cell in row] for row in reader if any(cell.strip() for cell in row)]


def parse_nubank_csv(csv_content: str) -> List[ParsedRow]:
    rows = _rows(csv_content)
    if not rows:
        return []
    first = ",".join(rows[0]).lower()
    if "data" in first or "date" in first:
        rows = rows[1:]
    parsed: List[ParsedRow] = []
    for row in rows:
        if len(row) < 3:
            continue
        date, description, raw_amount = row[0], row[1], row[2]
        amount = parse_brazilian_amount(raw_amount)
        if amount is None or not date:
            continue
        parsed.append(ParsedRow(date=date, description=description, amount=amount, currency="BRL"))
    return parsed


_WISE_COLUMNS = {
    "id": "id",
    "status": "status",
    "direction": "direction",
    "finished on": "finished_on",
    "source name": "source_name",
    "source amount (after fees)": "source_amount",
    "source currency": "source_currency",
    "target name": "target_name",
    "target amount (after fees)": "target_amount",
    "target currency": "target_currency",
    "reference": "reference",
}


def _to_float(value: Optional[str]) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else 0.0
    except ValueError:
        return None


def parse_wise_csv(csv_content: str) -> List[ParsedRow]:
    rows = _rows(csv_content)
    if len(rows) < 2:
        return []
    index: Dict[str, int] = {}
    for position, name in enumerate(rows[0]):
        key = _WISE_COLUMNS.get(name.lower())
        if key and key not in index:
            index[key] = position

    def cell(row: List[str], key: str) -> str:
        position = index.get(key)
        if position is None or position >= len(row):
            return ""
        return row[position]

    parsed: List[ParsedRow] = []
    for row in rows[1:]:
        date = cell(row, "finished_on")
        source_amount = _to_float(cell(row, "source_amount"))
        target_amount = _to_float(cell(row, "target_amount"))
        if not date or source_amount is None or target_amount is None:
            continue
        direction = cell(row, "direction").upper()
        source_name = cell(row, "source_name")
        target_name = cell(row, "target_name")
        if direction == "IN":
            amount = target_amount
            currency = cell(row, "target_currency")
            description = source_name or "Income"
        elif direction == "OUT":
            amount = -source_amount
            currency = cell(row, "source_currency")
            if source_name and target_name and source_name.strip() == target_name.strip():
                description = "Transferred to another bank"
            else:
                description = target_name or "Expense"
        else:
            # NEUTRAL rows are conversions between own balances
            continue
        reference = cell(row, "reference") or cell(row, "id") or f"{date}-{abs(amount)}"
        parsed.append(ParsedRow(
            date=date,
            description=description.strip(),
            amount=amount,
            currency=(currency or "USD").upper(),
            reference=reference,
        ))
    return parsed


def import_nubank(db: Session, *, user: models.User, goal: models.Goal, rows: List[ParsedRow]) -> Dict[str, int]:
    imported = skipped = 0
    for row in rows:
        when = parse_date(row.date)
        if when is not None and tx_repo.reason_exists_on_day(db, user_id=user.id, fragment=row.description, day=when):
            skipped += 1
            continue
        amount = round_half_up(abs(row.amount) * 100)
        if amount <= 0:
            skipped += 1
            continue
        tx_repo.create_transaction(
            db,
            user_id=user.id,
            goal=goal,
            type="income" if row.amount > 0 else "expense",
            amount=amount,
            reason=row.description or "Nubank transaction",
            source="csv",
            currency=row.currency,
            created_date=when,
            commit=False,
        )
        imported += 1
    db.commit()
    logger.info("Nubank CSV import for user %s: %d imported, %d skipped", user.id, imported, skipped)
    return {"imported_count": imported, "skipped_count": skipped, "total_transactions": len(rows)}


def import_wise(db: Session, *, user: models.User, goal: models.Goal, rows: List[ParsedRow]) -> Dict[str, int]:
    imported = skipped = 0
    for row in rows:
        reference = row.reference or ""
        if tx_repo.reason_exists(db, user_id=user.id, fragment=f"(Ref: {reference})"):
            skipped += 1
            continue
        amount = round_half_up(abs(row.amount) * 100)
        if amount <= 0:
            skipped += 1
            continue
        # Wise balances are reflected through the live API balance, not the ledger.
        tx_repo.create_transaction(
            db,
            user_id=user.id,
            goal=goal,
            type="income" if row.amount > 0 else "expense",
            amount=amount,
            reason=f"{row.description} (Ref: {reference})",
            source="wise",
            currency=row.currency,
            created_date=parse_date(row.date),
            adjust_goal=False,
            commit=False,
        )
        imported += 1
    db.commit()
    logger.info("Wise CSV import for user %s: %d imported, %d skipped", user.id, imported, skipped)
    return {"imported_count": imported, "skipped_count": skipped, "total_transactions": len(rows)}
