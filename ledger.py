"""
Validated mutations for groups, members and expenses.

Every operation takes the current state explicitly and returns a new value;
inputs are never modified, so a rejected mutation leaves the caller's state
exactly as it was.
"""
from __future__ import annotations
import logging
import math
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from errors import (
    DuplicateNameError,
    EmptyDescriptionError,
    EmptyInputError,
    LedgerError,
    NoParticipantsSelectedError,
    NonPositiveAmountError,
    NoPositiveSharesError,
    PayersAmountMismatchError,
    SharesAmountMismatchError,
    UnknownMemberError,
)
from models import (
    SPLIT_BY_AMOUNT,
    SPLIT_EQUAL,
    Expense,
    ExpenseParticipant,
    ExpensePayer,
    Group,
    Member,
)
from utils import amounts_match, new_id, safe_float

logger = logging.getLogger(__name__)

PayerInput = Union[ExpensePayer, Tuple[str, object]]


def _same_name(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


# ---------- Groups ----------
def find_group(groups: List[Group], group_id: str) -> Optional[Group]:
    return next((g for g in groups if g.id == group_id), None)


def find_group_by_name(groups: List[Group], name: str) -> Optional[Group]:
    return next((g for g in groups if _same_name(g.name, name)), None)


def create_group(
    groups: List[Group],
    name: str,
    reject_duplicates: bool = True,
) -> Tuple[List[Group], Group]:
    """
    Create an empty group and append it to the collection.
    Returns (new group list, created group).
    """
    name = (name or "").strip()
    if not name:
        logger.info("Rejected group with empty name")
        raise EmptyInputError("Please enter a group name.")
    if reject_duplicates and find_group_by_name(groups, name):
        logger.info("Rejected duplicate group name %r", name)
        raise DuplicateNameError("A group with this name already exists. Please choose a different name.")
    group = Group(id=new_id(), name=name)
    logger.debug("Created group %s (%s)", group.name, group.id)
    return list(groups) + [group], group


def delete_group(groups: List[Group], group_id: str) -> List[Group]:
    """Remove a group with all its members and expenses; no-op if absent"""
    return [g for g in groups if g.id != group_id]


def rename_group(
    groups: List[Group],
    group_id: str,
    name: str,
    reject_duplicates: bool = True,
) -> List[Group]:
    name = (name or "").strip()
    if not name:
        raise EmptyInputError("Please enter a group name.")
    if reject_duplicates and any(_same_name(g.name, name) and g.id != group_id for g in groups):
        raise DuplicateNameError("A group with this name already exists. Please choose a different name.")
    return [replace(g, name=name) if g.id == group_id else g for g in groups]


def replace_group(groups: List[Group], group: Group) -> List[Group]:
    """Swap in an updated group by id, keeping list order"""
    return [group if g.id == group.id else g for g in groups]


# ---------- Members ----------
def find_member_by_name(group: Group, name: str) -> Optional[Member]:
    return next((m for m in group.members if _same_name(m.name, name)), None)


def add_member(group: Group, name: str) -> Group:
    """Append a member with a fresh id; names are unique case-insensitively"""
    name = (name or "").strip()
    if not name:
        logger.info("Rejected member with empty name in group %s", group.name)
        raise EmptyInputError("Please enter a unique member name.")
    if find_member_by_name(group, name):
        logger.info("Rejected duplicate member %r in group %s", name, group.name)
        raise DuplicateNameError("Please enter a unique member name.")
    member = Member(id=new_id(), name=name)
    logger.debug("Added member %s to group %s", name, group.name)
    return replace(group, members=list(group.members) + [member])


def remove_member(group: Group, member_id: str) -> Group:
    """
    Remove a member and every expense that references it as payer or
    participant. Unknown ids leave the group unchanged.
    """
    members = [m for m in group.members if m.id != member_id]
    expenses = [e for e in group.expenses if member_id not in e.member_ids()]
    dropped = len(group.expenses) - len(expenses)
    if dropped:
        logger.debug("Removing member %s dropped %d expense(s)", member_id, dropped)
    return replace(group, members=members, expenses=expenses)


# ---------- Expenses ----------
def _coerce_payers(paid_by: Iterable[PayerInput]) -> List[ExpensePayer]:
    out = []
    for p in paid_by:
        if isinstance(p, ExpensePayer):
            out.append(ExpensePayer(p.member_id, float(p.amount)))
        else:
            member_id, amount = p
            out.append(ExpensePayer(member_id, safe_float(amount, 0.0)))
    return out


def _valid_money(value) -> bool:
    return value is not None and math.isfinite(value) and value >= 0


def _parse_share(value) -> float:
    """Entered share text or number; blank counts as zero"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0.0
    share = safe_float(value, None)
    if not _valid_money(share):
        raise SharesAmountMismatchError(f"Invalid share: {value!r}. Shares must be non-negative amounts.")
    return share


def _check_header(description: str, amount) -> float:
    if not (description or "").strip():
        raise EmptyDescriptionError("Please fill out Description and Amount fields.")
    numeric = safe_float(amount, None)
    if numeric is None or not math.isfinite(numeric) or numeric <= 0:
        raise NonPositiveAmountError("Expense amount must be greater than zero.")
    return numeric


def _check_payers(payers: List[ExpensePayer], amount: float) -> None:
    if not payers or not all(_valid_money(p.amount) for p in payers) \
            or not amounts_match(sum(p.amount for p in payers), amount):
        raise PayersAmountMismatchError("Please ensure the total paid amount matches the expense amount.")


def _check_members(group: Group, records) -> None:
    known = set(group.member_ids())
    unknown = [r.member_id for r in records if r.member_id not in known]
    if unknown:
        raise UnknownMemberError(f"Unknown member id: {unknown[0]}")


def validate_expense(group: Group, expense: Expense) -> None:
    """
    Check an already built expense (e.g. one read from a file) against the
    same rules add_expense applies; raises a LedgerError on the first failure.
    """
    amount = _check_header(expense.description, expense.amount)
    _check_payers(expense.paid_by, amount)
    if not expense.participants:
        raise NoParticipantsSelectedError("Expense has no participants.")
    if not all(_valid_money(p.share) for p in expense.participants) \
            or not amounts_match(sum(p.share for p in expense.participants), amount):
        raise SharesAmountMismatchError("The sum of individual shares must match the total expense amount.")
    if not any(p.share > 0 for p in expense.participants):
        raise NoPositiveSharesError("Please specify a share for at least one participant.")
    _check_members(group, list(expense.paid_by) + list(expense.participants))


def build_participants(
    amount: float,
    split_method: str,
    participants: Union[Iterable[str], Mapping[str, object]],
) -> List[ExpenseParticipant]:
    """
    Turn the caller's split selection into participant records.

    Equal split: ``participants`` is the selected member ids; each gets
    ``amount / count``. The rounding residue is accepted as-is.

    By amount: ``participants`` maps member id to the entered share (text or
    number; blank counts as zero, negative or non-numeric text is rejected).
    The raw entered total must match ``amount``; only positive shares are kept.
    """
    if split_method == SPLIT_EQUAL:
        selected = list(dict.fromkeys(participants))
        if not selected:
            raise NoParticipantsSelectedError("Please select at least one participant for an equal split.")
        share = amount / len(selected)
        return [ExpenseParticipant(mid, share) for mid in selected]

    if split_method == SPLIT_BY_AMOUNT:
        entered: Dict[str, float] = {mid: _parse_share(v) for mid, v in dict(participants).items()}
        if not amounts_match(sum(entered.values()), amount):
            raise SharesAmountMismatchError("The sum of individual shares must match the total expense amount.")
        kept = [ExpenseParticipant(mid, s) for mid, s in entered.items() if s > 0]
        if not kept:
            raise NoPositiveSharesError("Please specify a share for at least one participant.")
        return kept

    raise ValueError(f"Unknown split method: {split_method!r}")


def add_expense(
    group: Group,
    description: str,
    amount,
    paid_by: Iterable[PayerInput],
    participants: Union[Iterable[str], Mapping[str, object]],
    split_method: str = SPLIT_EQUAL,
) -> Group:
    """Validate and append a new expense; raises a LedgerError on bad input"""
    description = (description or "").strip()
    try:
        numeric = _check_header(description, amount)
        payers = _coerce_payers(paid_by)
        _check_payers(payers, numeric)
        parts = build_participants(numeric, split_method, participants)
        _check_members(group, list(payers) + parts)
    except LedgerError as ex:
        logger.info("Rejected expense %r in group %s: %s", description, group.name, ex.kind)
        raise

    expense = Expense(
        id=new_id(),
        description=description,
        amount=numeric,
        paid_by=payers,
        participants=parts,
    )
    logger.debug("Added expense %s (%.2f) to group %s", description, numeric, group.name)
    return replace(group, expenses=list(group.expenses) + [expense])


def remove_expense(group: Group, expense_id: str) -> Group:
    return replace(group, expenses=[e for e in group.expenses if e.id != expense_id])


def reset_expenses(group: Group) -> Group:
    """Clear all expenses, keeping members"""
    logger.debug("Reset %d expense(s) in group %s", len(group.expenses), group.name)
    return replace(group, expenses=[])


def merge_expenses(group: Group, expenses: Iterable[Expense], replace_existing: bool = False) -> Group:
    """
    Append (or replace with) externally loaded expenses. Expenses that fail
    validation, including ones referencing members not in the group, are
    skipped.
    """
    accepted = []
    for e in expenses:
        try:
            validate_expense(group, e)
        except LedgerError as ex:
            logger.warning("Skipping expense %r: %s (%s)", e.description, ex.kind, ex.message)
            continue
        accepted.append(e)
    base = [] if replace_existing else list(group.expenses)
    return replace(group, expenses=base + accepted)
