"""
Validation errors raised by ledger mutations
"""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for user-facing ledger validation failures"""
    kind = "LedgerError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class DuplicateNameError(LedgerError):
    kind = "DuplicateName"


class EmptyInputError(LedgerError):
    kind = "EmptyInput"


class EmptyDescriptionError(EmptyInputError):
    kind = "EmptyDescription"


class NonPositiveAmountError(LedgerError):
    kind = "NonPositiveAmount"


class PayersAmountMismatchError(LedgerError):
    kind = "PayersAmountMismatch"


class SharesAmountMismatchError(LedgerError):
    kind = "SharesAmountMismatch"


class NoParticipantsSelectedError(LedgerError):
    kind = "NoParticipantsSelected"


class NoPositiveSharesError(LedgerError):
    kind = "NoPositiveShares"


class UnknownMemberError(LedgerError):
    kind = "UnknownMember"
