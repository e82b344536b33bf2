"""
CSV export and import functionality for GroupSplit
"""
from __future__ import annotations
import csv
from typing import List, Tuple

from models import Expense, ExpenseParticipant, ExpensePayer
from utils import new_id

HEADER = ['id', 'description', 'amount', 'paid_by', 'participants']


def _encode(pairs: List[Tuple[str, float]]) -> str:
    return ';'.join([f"{k}:{v}" for k, v in pairs])


def _decode(text: str) -> List[Tuple[str, float]]:
    out = []
    if text:
        for pair in text.split(';'):
            if ':' in pair:
                k, v = pair.rsplit(':', 1)
                out.append((k.strip(), float(v.strip())))
    return out


def export_expenses_to_csv(expenses: List[Expense], filepath: str) -> None:
    """
    Export expenses list to CSV file
    CSV columns: id, description, amount, paid_by, participants
    where paid_by/participants are "memberId:value;memberId:value"
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(HEADER)
        for e in expenses:
            writer.writerow([
                e.id,
                e.description,
                e.amount,
                _encode([(p.member_id, p.amount) for p in e.paid_by]),
                _encode([(p.member_id, p.share) for p in e.participants]),
            ])


def import_expenses_from_csv(filepath: str) -> List[Expense]:
    """
    Import expenses list from CSV file
    Returns list of Expense objects; raises ValueError on a malformed file
    """
    expenses = []

    with open(filepath, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        missing = [c for c in HEADER if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"CSV file is missing column(s): {', '.join(missing)}")

        for row in reader:
            try:
                expenses.append(Expense(
                    id=row['id'] or new_id(),
                    description=row['description'] or '',
                    amount=float(row['amount']),
                    paid_by=[ExpensePayer(k, v) for k, v in _decode(row['paid_by'])],
                    participants=[ExpenseParticipant(k, v) for k, v in _decode(row['participants'])],
                ))
            except (TypeError, ValueError) as ex:
                raise ValueError(f"Invalid CSV row on line {reader.line_num}: {ex}") from ex

    return expenses
