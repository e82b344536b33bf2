"""
Excel export functionality for GroupSplit
"""
from __future__ import annotations

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from models import Group
from computations import compute_member_totals, recompute
from utils import EPSILON


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _money_format(ws, columns, first_row=2):
    for r in range(first_row, ws.max_row + 1):
        for c in columns:
            ws.cell(r, c).number_format = "0.00"


def export_excel(group: Group, filepath: str) -> None:
    """
    Export a group to an Excel file with three sheets:
    - Expenses: one row per expense, with a share column per member
    - Balances: paid / consumed / net per member
    - Settlements: suggested transfers
    """
    wb = Workbook()
    wb.remove(wb.active)

    members = group.members

    # Expenses
    ws = wb.create_sheet("Expenses")
    headers = ["Description", "Amount", "Paid by"] + [f"{m.name} share" for m in members]
    ws.append(headers)
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for e in group.expenses:
        payers = ", ".join(f"{group.member_name(p.member_id)} {p.amount:.2f}" for p in e.paid_by)
        shares = {p.member_id: p.share for p in e.participants}
        ws.append([e.description, e.amount, payers] + [shares.get(m.id, 0.0) for m in members])
    if group.expenses:
        ws.append(["TOTALS"] + [""] * (len(headers) - 1))
        trow = ws.max_row
        ws.cell(trow, 1).font = Font(bold=True)
        last = trow - 1
        ws.cell(trow, 2).value = f"=SUM(B2:B{last})"
        for i in range(len(members)):
            letter = get_column_letter(4 + i)
            ws.cell(trow, 4 + i).value = f"=SUM({letter}2:{letter}{last})"
    _money_format(ws, [2] + list(range(4, 4 + len(members))))
    _autosize_columns(ws)

    # Balances
    ws = wb.create_sheet("Balances")
    ws.append(["Member", "Paid", "Consumed", "Net (Paid-Consumed)", "Status"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    totals = compute_member_totals(group)
    for m in members:
        t = totals[m.id]
        if t["net"] > EPSILON:
            status = "owed"
        elif t["net"] < -EPSILON:
            status = "owes"
        else:
            status = "settled"
        ws.append([m.name, t["paid"], t["consumed"], t["net"], status])
    _money_format(ws, [2, 3, 4])
    _autosize_columns(ws)

    # Settlements
    ws = wb.create_sheet("Settlements")
    ws.append(["From (Debtor)", "To (Creditor)", "Amount"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for s in recompute(group).settlements:
        ws.append([s.debtor, s.creditor, s.amount])
    _money_format(ws, [3])
    _autosize_columns(ws)

    wb.save(filepath)
