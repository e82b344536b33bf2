"""
GroupSplit command line
- Keep groups of people, log shared expenses with flexible payer and participant splits.
- Show balances and a settlement plan (who pays whom), export CSV or Excel.

Run:
  python splitter_cli.py --help

Dependencies:
  pip install openpyxl
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional, Tuple

import ledger
from computations import build_share_report, format_settlement, recompute, summary_messages
from config import Settings, load_groups, load_settings, save_groups
from csv_handler import export_expenses_to_csv, import_expenses_from_csv
from errors import LedgerError, UnknownMemberError
from excel_export import export_excel
from models import SPLIT_BY_AMOUNT, SPLIT_EQUAL, SPLIT_METHODS, Group

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Bad command line input that is not a ledger validation failure"""


def _parse_pair(text: str) -> Tuple[str, Optional[str]]:
    """Split NAME=AMOUNT; AMOUNT may be absent"""
    if "=" in text:
        name, value = text.rsplit("=", 1)
        return name.strip(), value.strip()
    return text.strip(), None


class App:
    """Loads the store, applies one command and saves it back"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.groups: List[Group] = load_groups(settings.data_file)

    def save(self):
        if not save_groups(self.groups, self.settings.data_file):
            logger.warning("Changes could not be saved to %s", self.settings.data_file)

    def group(self, name: str) -> Group:
        g = ledger.find_group_by_name(self.groups, name)
        if g is None:
            raise CommandError(f"No group named '{name}'.")
        return g

    def update(self, group: Group):
        self.groups = ledger.replace_group(self.groups, group)
        self.save()

    @staticmethod
    def member_id(group: Group, name: str) -> str:
        m = ledger.find_member_by_name(group, name)
        if m is None:
            raise UnknownMemberError(f"No member named '{name}' in {group.name}.")
        return m.id

    # ---------- Groups ----------
    def cmd_groups(self, args):
        for g in self.groups:
            print(f"{g.name}  ({len(g.members)} members, {len(g.expenses)} expenses)")

    def cmd_create_group(self, args):
        self.groups, g = ledger.create_group(
            self.groups, args.name, self.settings.reject_duplicate_group_names
        )
        self.save()
        print(f"Created group {g.name}")

    def cmd_delete_group(self, args):
        g = self.group(args.group)
        self.groups = ledger.delete_group(self.groups, g.id)
        self.save()
        print(f"Deleted group {g.name}")

    def cmd_rename_group(self, args):
        g = self.group(args.group)
        self.groups = ledger.rename_group(
            self.groups, g.id, args.name, self.settings.reject_duplicate_group_names
        )
        self.save()
        print(f"Renamed group {g.name} to {args.name.strip()}")

    # ---------- Members ----------
    def cmd_members(self, args):
        for m in self.group(args.group).members:
            print(m.name)

    def cmd_add_member(self, args):
        self.update(ledger.add_member(self.group(args.group), args.name))

    def cmd_remove_member(self, args):
        g = self.group(args.group)
        before = len(g.expenses)
        g = ledger.remove_member(g, self.member_id(g, args.name))
        self.update(g)
        if before != len(g.expenses):
            print(f"Removed {before - len(g.expenses)} expense(s) involving {args.name}")

    # ---------- Expenses ----------
    def cmd_expenses(self, args):
        g = self.group(args.group)
        cur = self.settings.currency
        for e in g.expenses:
            payers = ", ".join(g.member_name(p.member_id) for p in e.paid_by)
            print(f"{e.id}  {e.description}  {cur}{e.amount:.2f}  paid by {payers}")

    def cmd_add_expense(self, args):
        g = self.group(args.group)
        if not args.paid:
            raise CommandError("At least one --paid NAME[=AMOUNT] is required.")
        paid_by = []
        for text in args.paid:
            name, value = _parse_pair(text)
            paid_by.append((self.member_id(g, name), value if value is not None else args.amount))

        if args.split == SPLIT_EQUAL:
            names = args.with_ or [m.name for m in g.members]
            participants = [self.member_id(g, n) for n in names]
        else:
            participants = {}
            for text in args.share or []:
                name, value = _parse_pair(text)
                participants[self.member_id(g, name)] = value or ""

        self.update(ledger.add_expense(g, args.description, args.amount, paid_by, participants, args.split))

    def cmd_remove_expense(self, args):
        self.update(ledger.remove_expense(self.group(args.group), args.expense_id))

    def cmd_reset(self, args):
        self.update(ledger.reset_expenses(self.group(args.group)))

    # ---------- Reports ----------
    def cmd_summary(self, args):
        g = self.group(args.group)
        summary = recompute(g)
        cur = self.settings.currency
        if args.report:
            report = build_share_report(g, summary, cur)
            print(report if report is not None else "No expenses yet.")
            return
        if summary.total_spent is None:
            print("No expenses yet.")
            return
        print(f"Total Spent: {cur}{summary.total_spent:.2f}")
        for _, message in summary_messages(summary.balances, currency=cur):
            print(message)
        if summary.settlements:
            print("Settlements:")
            for s in summary.settlements:
                print(f"- {format_settlement(s, cur)}")

    def cmd_export_excel(self, args):
        export_excel(self.group(args.group), args.file)
        print(f"Exported: {args.file}")

    def cmd_export_csv(self, args):
        g = self.group(args.group)
        export_expenses_to_csv(g.expenses, args.file)
        print(f"Exported {len(g.expenses)} expenses to: {args.file}")

    def cmd_import_csv(self, args):
        g = self.group(args.group)
        imported = import_expenses_from_csv(args.file)
        kept = 0 if args.replace else len(g.expenses)
        g = ledger.merge_expenses(g, imported, replace_existing=args.replace)
        self.update(g)
        skipped = len(imported) - (len(g.expenses) - kept)
        if skipped:
            print(f"Skipped {skipped} invalid expense(s) from {args.file}")
        print(f"Group {g.name} now has {len(g.expenses)} expenses.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="groupsplit",
        description="Split group expenses and work out who pays whom",
    )
    p.add_argument("--data", help="Path to the groups JSON store")
    p.add_argument("--settings", help="Path to settings JSON")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("groups", help="List groups")
    s = sub.add_parser("create-group", help="Create an empty group")
    s.add_argument("name")
    s = sub.add_parser("delete-group", help="Delete a group with its members and expenses")
    s.add_argument("group")
    s = sub.add_parser("rename-group", help="Rename a group")
    s.add_argument("group")
    s.add_argument("name")

    s = sub.add_parser("members", help="List members of a group")
    s.add_argument("group")
    s = sub.add_parser("add-member", help="Add a member to a group")
    s.add_argument("group")
    s.add_argument("name")
    s = sub.add_parser("remove-member", help="Remove a member and every expense involving them")
    s.add_argument("group")
    s.add_argument("name")

    s = sub.add_parser("expenses", help="List expenses of a group")
    s.add_argument("group")
    s = sub.add_parser("add-expense", help="Record an expense")
    s.add_argument("group")
    s.add_argument("description")
    s.add_argument("amount")
    s.add_argument("--paid", action="append", metavar="NAME[=AMOUNT]",
                   help="Payer and amount paid; repeat for several payers")
    s.add_argument("--split", choices=SPLIT_METHODS, default=SPLIT_EQUAL)
    s.add_argument("--with", dest="with_", action="append", metavar="NAME",
                   help="Participant for an equal split (default: everyone)")
    s.add_argument("--share", action="append", metavar="NAME=AMOUNT",
                   help=f"Participant share when --split {SPLIT_BY_AMOUNT}")
    s = sub.add_parser("remove-expense", help="Delete an expense by id")
    s.add_argument("group")
    s.add_argument("expense_id")
    s = sub.add_parser("reset", help="Delete all expenses of a group")
    s.add_argument("group")

    s = sub.add_parser("summary", help="Show balances and settlements")
    s.add_argument("group")
    s.add_argument("--report", action="store_true", help="Print the shareable text report")
    s = sub.add_parser("export-excel", help="Export a group to .xlsx")
    s.add_argument("group")
    s.add_argument("file")
    s = sub.add_parser("export-csv", help="Export a group's expenses to CSV")
    s.add_argument("group")
    s.add_argument("file")
    s = sub.add_parser("import-csv", help="Import expenses from CSV")
    s.add_argument("group")
    s.add_argument("file")
    s.add_argument("--replace", action="store_true", help="Replace instead of append")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.settings)
    if args.data:
        settings.data_file = args.data

    app = App(settings)
    handler = getattr(app, "cmd_" + args.command.replace("-", "_"))
    try:
        handler(args)
    except (LedgerError, CommandError, OSError, ValueError) as ex:
        print(f"error: {ex}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
