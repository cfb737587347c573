"""Repayment allocation engine

Splits an incoming payment across a loan's interest and principal balances
(interest first), classifies the resulting transaction and decides the
loan's next status. Pure computation: no database access, no clock.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

ZERO = Decimal('0')


class LoanStatus(str, Enum):
    """Loan lifecycle states"""
    NORMAL = 'normal'
    SETTLED = 'settled'
    NEGOTIATING = 'negotiating'
    BAD_DEBT = 'bad_debt'


class DepositPolicy(str, Enum):
    """How a held deposit is meant to be applied at settlement"""
    NONE = 'none'
    OFFSET_LAST = 'offset_last'
    OFFSET_FIRST = 'offset_first'


class RepaymentKind(str, Enum):
    REGULAR = 'regular'
    PARTIAL = 'partial'
    SETTLEMENT = 'settlement'


class AllocationError(Exception):
    """Base class for allocation failures"""
    code = 'allocation_error'


class InvalidAmount(AllocationError):
    code = 'invalid_amount'


class LoanAlreadySettled(AllocationError):
    code = 'loan_already_settled'


def _as_decimal(value, name):
    # bool is an int subclass, and floats are never money
    if isinstance(value, (bool, float)) or not isinstance(value, (Decimal, int)):
        raise TypeError(f'{name} must be a Decimal, got {type(value).__name__}')
    value = Decimal(value)
    if not value.is_finite():
        raise ValueError(f'{name} must be finite')
    return value


@dataclass(frozen=True)
class LoanSnapshot:
    """Read-only view of a loan's balances at the moment of allocation"""
    principal: Decimal
    principal_balance: Decimal
    interest_balance: Decimal
    deposit_amount: Decimal = ZERO
    deposit_policy: DepositPolicy = DepositPolicy.NONE
    status: LoanStatus = LoanStatus.NORMAL

    def __post_init__(self):
        for name in ('principal', 'principal_balance', 'interest_balance', 'deposit_amount'):
            object.__setattr__(self, name, _as_decimal(getattr(self, name), name))
        object.__setattr__(self, 'deposit_policy', DepositPolicy(self.deposit_policy))
        object.__setattr__(self, 'status', LoanStatus(self.status))

        if self.principal <= ZERO:
            raise ValueError('principal must be greater than zero')
        if self.principal_balance < ZERO or self.interest_balance < ZERO:
            raise ValueError('balances cannot be negative')
        if self.deposit_amount < ZERO:
            raise ValueError('deposit_amount cannot be negative')
        if self.principal_balance > self.principal:
            raise ValueError('principal_balance cannot exceed principal')

    @property
    def outstanding(self):
        return self.interest_balance + self.principal_balance


@dataclass(frozen=True)
class AllocationResult:
    amount_in: Decimal
    alloc_interest: Decimal
    alloc_principal: Decimal
    remaining: Decimal
    new_principal_balance: Decimal
    new_interest_balance: Decimal
    kind: RepaymentKind
    new_status: LoanStatus

    @property
    def is_settlement(self):
        return self.kind is RepaymentKind.SETTLEMENT


def allocate(loan, amount_in):
    """Apply ``amount_in`` to ``loan`` interest first, then principal.

    Args:
        loan: LoanSnapshot taken immediately before the allocation
        amount_in: payment received, as a Decimal

    Returns:
        AllocationResult with the split, the new balances, the transaction
        kind and the loan's new status. Any unapplied overpayment is left in
        ``remaining`` and is not written to either balance.

    Raises:
        InvalidAmount: the amount is not a strictly positive Decimal
        LoanAlreadySettled: the loan is already settled
    """
    try:
        amount = _as_decimal(amount_in, 'amount_in')
    except (TypeError, ValueError) as exc:
        raise InvalidAmount(str(exc)) from exc
    if amount <= ZERO:
        raise InvalidAmount('Repayment amount must be greater than zero')

    if loan.status is LoanStatus.SETTLED:
        raise LoanAlreadySettled('Loan is already settled')

    remaining = amount
    alloc_interest = min(remaining, loan.interest_balance)
    remaining -= alloc_interest
    alloc_principal = min(remaining, loan.principal_balance)
    remaining -= alloc_principal

    new_interest_balance = loan.interest_balance - alloc_interest
    new_principal_balance = loan.principal_balance - alloc_principal

    if new_interest_balance == ZERO and new_principal_balance == ZERO:
        kind = RepaymentKind.SETTLEMENT
        new_status = LoanStatus.SETTLED
    elif amount < loan.outstanding:
        kind = RepaymentKind.PARTIAL
        new_status = loan.status
    else:
        kind = RepaymentKind.REGULAR
        new_status = loan.status

    return AllocationResult(
        amount_in=amount,
        alloc_interest=alloc_interest,
        alloc_principal=alloc_principal,
        remaining=remaining,
        new_principal_balance=new_principal_balance,
        new_interest_balance=new_interest_balance,
        kind=kind,
        new_status=new_status,
    )
