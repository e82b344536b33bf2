"""
Business logic and computations for GroupSplit
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from models import Expense, Group
from utils import CURRENCY, EPSILON, format_money


@dataclass
class MemberBalance:
    member_id: str
    name: str
    balance: float  # positive -> is owed; negative -> owes


@dataclass
class Settlement:
    """One suggested transfer: debtor pays creditor"""
    debtor: str
    creditor: str
    amount: float


@dataclass
class Summary:
    """Result of a full recompute over a group"""
    total_spent: Optional[float] = None
    balances: List[MemberBalance] = field(default_factory=list)
    settlements: List[Settlement] = field(default_factory=list)


def total_spent(expenses: List[Expense]) -> float:
    """Sum of expense face values, independent of who paid"""
    return sum(float(e.amount) for e in expenses)


def compute_balances(group: Group) -> Dict[str, float]:
    """
    Net balance per member id, in member order.
    Payers are credited what they paid; participants are debited their share.
    """
    balances = {m.id: 0.0 for m in group.members}
    for e in group.expenses:
        for p in e.paid_by:
            balances[p.member_id] = balances.get(p.member_id, 0.0) + float(p.amount)
        for p in e.participants:
            balances[p.member_id] = balances.get(p.member_id, 0.0) - float(p.share)
    return balances


def compute_member_totals(group: Group) -> Dict[str, dict]:
    """
    Per-member breakdown.
    Returns dict mapping member id -> {paid, consumed, net}
    """
    paid = {m.id: 0.0 for m in group.members}
    consumed = {m.id: 0.0 for m in group.members}
    for e in group.expenses:
        for p in e.paid_by:
            if p.member_id in paid:
                paid[p.member_id] += float(p.amount)
        for p in e.participants:
            if p.member_id in consumed:
                consumed[p.member_id] += float(p.share)
    return {
        mid: {
            "paid": paid[mid],
            "consumed": consumed[mid],
            "net": paid[mid] - consumed[mid],
        } for mid in paid
    }


def compute_transfers(
    balances: List[Tuple[str, float]],
    eps: float = EPSILON,
    strict_creditor: bool = False,
) -> List[Settlement]:
    """
    Compute transfers to settle debts.
    Greedy settlement: the first debtor pays the first creditor until one side
    is cleared. Input order is kept within each side (no sorting by size).

    ``strict_creditor`` reproduces the one-sided creditor check
    (``balance < eps``) instead of ``abs(balance) < eps``.
    """
    debtors = [[name, v] for name, v in balances if v < -eps]
    creditors = [[name, v] for name, v in balances if v > eps]

    transfers = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]
        x = min(abs(debtor[1]), creditor[1])
        transfers.append(Settlement(debtor[0], creditor[0], x))
        debtor[1] += x
        creditor[1] -= x
        if abs(debtor[1]) < eps:
            i += 1
        done = creditor[1] < eps if strict_creditor else abs(creditor[1]) < eps
        if done:
            j += 1

    return transfers


def recompute(group: Group, eps: float = EPSILON) -> Summary:
    """
    Full, deterministic recalculation of totals, balances and settlements.
    Returns an empty Summary when the group has no members or no expenses.
    """
    if not group.members or not group.expenses:
        return Summary()

    net = compute_balances(group)
    balances = [MemberBalance(m.id, m.name, net[m.id]) for m in group.members]
    settlements = compute_transfers([(b.name, b.balance) for b in balances], eps)
    return Summary(
        total_spent=total_spent(group.expenses),
        balances=balances,
        settlements=settlements,
    )


def summary_messages(
    balances: List[MemberBalance],
    eps: float = EPSILON,
    currency: str = CURRENCY,
) -> List[Tuple[str, str]]:
    """(type, message) per member where type is owed, owes or settled"""
    out = []
    for b in balances:
        if b.balance > eps:
            out.append(("owed", f"{b.name} is owed {format_money(b.balance, currency)}"))
        elif b.balance < -eps:
            out.append(("owes", f"{b.name} owes {format_money(abs(b.balance), currency)}"))
        else:
            out.append(("settled", f"{b.name} is settled"))
    return out


def format_settlement(s: Settlement, currency: str = CURRENCY) -> str:
    return f"{s.debtor} pays {s.creditor} {format_money(s.amount, currency)}"


def build_share_report(group: Group, summary: Summary, currency: str = CURRENCY) -> Optional[str]:
    """Plain-text report suitable for pasting into a chat"""
    if summary.total_spent is None:
        return None
    steps = "\n".join(f"- {format_settlement(s, currency)}" for s in summary.settlements)
    return (
        f"*{group.name} - Summary*\n\n"
        f"Total Spent: {format_money(summary.total_spent, currency)}\n\n"
        f"*Settlements:*\n{steps}"
    )
