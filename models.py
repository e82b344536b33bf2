"""
Data models for GroupSplit
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

SPLIT_EQUAL = "equally"
SPLIT_BY_AMOUNT = "amount"
SPLIT_METHODS = (SPLIT_EQUAL, SPLIT_BY_AMOUNT)


@dataclass
class Member:
    """Named participant within a group"""
    id: str
    name: str


@dataclass
class ExpensePayer:
    """One contribution toward funding an expense"""
    member_id: str
    amount: float


@dataclass
class ExpenseParticipant:
    """One member's portion of an expense"""
    member_id: str
    share: float


@dataclass
class Expense:
    """Single recorded cost with its funders and consumers"""
    id: str
    description: str
    amount: float  # total face value
    paid_by: List[ExpensePayer] = field(default_factory=list)
    participants: List[ExpenseParticipant] = field(default_factory=list)

    def member_ids(self) -> set:
        """All member ids referenced as payer or participant"""
        return {p.member_id for p in self.paid_by} | {p.member_id for p in self.participants}


@dataclass
class Group:
    """Named collection of members and expenses"""
    id: str
    name: str
    members: List[Member] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)

    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]

    def member_name(self, member_id: str) -> str:
        for m in self.members:
            if m.id == member_id:
                return m.name
        return member_id
