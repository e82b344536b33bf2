"""
Configuration and data loading/saving for GroupSplit
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import List, Optional

from models import Expense, ExpenseParticipant, ExpensePayer, Group, Member
from utils import CURRENCY, app_dir, new_id, safe_float

logger = logging.getLogger(__name__)


def _default_data_file() -> str:
    return os.path.join(app_dir(), "groups.json")


@dataclass
class Settings:
    """Application settings"""
    data_file: str = field(default_factory=_default_data_file)
    reject_duplicate_group_names: bool = True
    currency: str = CURRENCY


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from JSON file, falling back to defaults"""
    path = path or os.path.join(app_dir(), "settings.json")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return Settings()
    except (OSError, ValueError):
        logger.exception("Failed to read settings from %s", path)
        return Settings()
    if not isinstance(data, dict):
        logger.error("Ignoring malformed settings in %s", path)
        return Settings()
    known = {f.name for f in fields(Settings)}
    return Settings(**{k: v for k, v in data.items() if k in known})


# ---------- Group codec ----------
def group_to_dict(group: Group) -> dict:
    """Convert Group object to dictionary for JSON serialization"""
    return {
        "id": group.id,
        "name": group.name,
        "members": [{"id": m.id, "name": m.name} for m in group.members],
        "expenses": [
            {
                "id": e.id,
                "description": e.description,
                "amount": e.amount,
                "paidBy": [{"memberId": p.member_id, "amount": p.amount} for p in e.paid_by],
                "participants": [{"memberId": p.member_id, "share": p.share} for p in e.participants],
            } for e in group.expenses
        ],
    }


def _dict_to_expense(d: dict) -> Expense:
    amount = safe_float(d.get("amount"), 0.0)
    paid_by = d.get("paidBy")
    if paid_by is None:
        legacy = d.get("paidById")
        paid_by = [{"memberId": legacy, "amount": amount}] if legacy else []
        if legacy:
            logger.info("Upgraded legacy single-payer expense %s", d.get("id"))
    return Expense(
        id=d.get("id") or new_id(),
        description=d.get("description", ""),
        amount=amount,
        paid_by=[ExpensePayer(p["memberId"], safe_float(p.get("amount"), 0.0)) for p in paid_by],
        participants=[
            ExpenseParticipant(p["memberId"], safe_float(p.get("share"), 0.0))
            for p in d.get("participants") or []
        ],
    )


def dict_to_group(d: dict) -> Group:
    """Convert dictionary from JSON to Group object, tolerating older records"""
    return Group(
        id=d.get("id") or new_id(),
        name=d.get("name") or "Untitled Group",
        members=[Member(m.get("id") or new_id(), m.get("name", "")) for m in d.get("members") or []],
        expenses=[_dict_to_expense(e) for e in d.get("expenses") or []],
    )


def groups_to_list(groups: List[Group]) -> List[dict]:
    return [group_to_dict(g) for g in groups]


def list_to_groups(data) -> List[Group]:
    """Decode a stored group list; any malformed content yields an empty list"""
    try:
        return [dict_to_group(d) for d in data]
    except (TypeError, KeyError, AttributeError, ValueError):
        logger.exception("Failed to parse stored groups")
        return []


# ---------- Store ----------
def load_groups(path: str) -> List[Group]:
    """Load group list from JSON file; never raises"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return []
    except (OSError, ValueError):
        logger.exception("Failed to load groups from %s", path)
        return []
    return list_to_groups(data)


def save_groups(groups: List[Group], path: str) -> bool:
    """Best-effort save of the group list; returns False on failure"""
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(groups_to_list(groups), f, ensure_ascii=False, indent=2)
    except (OSError, TypeError, ValueError):
        logger.exception("Failed to save groups to %s", path)
        return False
    return True
