"""
Repayment recording against the database: locking, retries and atomicity
"""
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from cr3dify import db
from cr3dify.allocation import InvalidAmount, LoanAlreadySettled
from cr3dify.models import Loan, RepaymentTxn, ActivityLog
from cr3dify.repayments import service
from cr3dify.repayments.service import record_repayment, LoanNotFound, ConcurrentModification

def bump_version(loan_id):
    """Simulate another writer committing a change to the loan row"""
    db.session.execute(text('UPDATE loans SET version_id = version_id + 1 WHERE id = :id'), {'id': loan_id})

def test_records_transaction_and_updates_loan(ctx, tenant, make_loan):
    loan_id = make_loan(tenant, principal='1000', interest_balance='100')

    txn, result, loan = record_repayment(tenant.id, loan_id, Decimal('150'))

    assert txn.id is not None
    assert txn.kind == 'partial'
    assert Decimal(txn.alloc_interest) == Decimal('100')
    assert Decimal(txn.alloc_principal) == Decimal('50')

    db.session.expire_all()
    stored = db.session.get(Loan, loan_id)
    assert Decimal(stored.interest_balance) == Decimal('0')
    assert Decimal(stored.principal_balance) == Decimal('950')
    assert stored.status == 'normal'
    assert RepaymentTxn.query.filter_by(loan_id=loan_id).count() == 1

def test_settlement_marks_loan_settled(ctx, tenant, make_loan):
    loan_id = make_loan(tenant, principal='1000', interest_balance='100')

    txn, result, loan = record_repayment(tenant.id, loan_id, Decimal('1200'))

    assert txn.kind == 'settlement'
    assert result.remaining == Decimal('100')
    assert loan.status == 'settled'
    # The overpayment is never written to either balance
    assert Decimal(loan.principal_balance) == Decimal('0')
    assert Decimal(loan.interest_balance) == Decimal('0')
    assert Decimal(txn.amount_in) == Decimal('1200')

def test_audit_entry_written_with_transaction(ctx, tenant, make_loan):
    loan_id = make_loan(tenant)

    record_repayment(tenant.id, loan_id, Decimal('10'), user_id=tenant.id)

    entry = ActivityLog.query.filter_by(action='create_repayment', entity_id=loan_id).one()
    assert entry.user_id == tenant.id
    assert entry.entity_type == 'loan'

def test_payment_on_settled_loan_writes_nothing(ctx, tenant, make_loan):
    loan_id = make_loan(tenant, principal_balance='0', interest_balance='0', status='settled')

    with pytest.raises(LoanAlreadySettled):
        record_repayment(tenant.id, loan_id, Decimal('10'))

    assert RepaymentTxn.query.count() == 0
    assert ActivityLog.query.count() == 0

def test_invalid_amount_writes_nothing(ctx, tenant, make_loan):
    loan_id = make_loan(tenant)

    with pytest.raises(InvalidAmount):
        record_repayment(tenant.id, loan_id, Decimal('-1'))

    assert RepaymentTxn.query.count() == 0
    assert Decimal(db.session.get(Loan, loan_id).interest_balance) == Decimal('100')

def test_unknown_loan(ctx, tenant):
    with pytest.raises(LoanNotFound):
        record_repayment(tenant.id, 999, Decimal('10'))

def test_loan_of_another_tenant_is_not_found(ctx, tenant, other_tenant, make_loan):
    loan_id = make_loan(other_tenant)

    with pytest.raises(LoanNotFound):
        record_repayment(tenant.id, loan_id, Decimal('10'))

    assert RepaymentTxn.query.count() == 0

def test_version_conflict_is_retried(ctx, tenant, make_loan, monkeypatch):
    loan_id = make_loan(tenant, principal='1000', interest_balance='100')
    calls = []
    real_allocate = service.allocate

    def racing_allocate(snapshot, amount_in):
        calls.append(snapshot)
        if len(calls) == 1:
            bump_version(loan_id)
        return real_allocate(snapshot, amount_in)

    monkeypatch.setattr(service, 'allocate', racing_allocate)

    txn, result, loan = record_repayment(tenant.id, loan_id, Decimal('50'))

    assert len(calls) == 2
    assert RepaymentTxn.query.filter_by(loan_id=loan_id).count() == 1
    assert Decimal(loan.interest_balance) == Decimal('50')

def test_gives_up_after_max_attempts(ctx, tenant, make_loan, monkeypatch):
    loan_id = make_loan(tenant, principal='1000', interest_balance='100')
    calls = []
    real_allocate = service.allocate

    def always_racing(snapshot, amount_in):
        calls.append(snapshot)
        bump_version(loan_id)
        return real_allocate(snapshot, amount_in)

    monkeypatch.setattr(service, 'allocate', always_racing)

    with pytest.raises(ConcurrentModification):
        record_repayment(tenant.id, loan_id, Decimal('50'))

    assert len(calls) == ctx.config['REPAYMENT_MAX_ATTEMPTS']
    assert RepaymentTxn.query.count() == 0
    db.session.expire_all()
    assert Decimal(db.session.get(Loan, loan_id).interest_balance) == Decimal('100')

def test_max_attempts_override(ctx, tenant, make_loan, monkeypatch):
    loan_id = make_loan(tenant)
    calls = []
    real_allocate = service.allocate

    def always_racing(snapshot, amount_in):
        calls.append(snapshot)
        bump_version(loan_id)
        return real_allocate(snapshot, amount_in)

    monkeypatch.setattr(service, 'allocate', always_racing)

    with pytest.raises(ConcurrentModification):
        record_repayment(tenant.id, loan_id, Decimal('50'), max_attempts=1)

    assert len(calls) == 1

def test_failed_commit_leaves_no_partial_write(ctx, tenant, make_loan, monkeypatch):
    loan_id = make_loan(tenant, principal='1000', interest_balance='100')

    def failing_commit():
        db.session.flush()
        raise SQLAlchemyError('disk I/O error')

    monkeypatch.setattr(db.session(), 'commit', failing_commit)

    with pytest.raises(SQLAlchemyError):
        record_repayment(tenant.id, loan_id, Decimal('500'))

    monkeypatch.undo()
    db.session.expire_all()
    loan = db.session.get(Loan, loan_id)
    assert RepaymentTxn.query.count() == 0
    assert ActivityLog.query.filter_by(action='create_repayment').count() == 0
    assert Decimal(loan.interest_balance) == Decimal('100')
    assert Decimal(loan.principal_balance) == Decimal('1000')
    assert loan.status == 'normal'

def test_sequential_payments_drive_loan_to_settlement(ctx, tenant, make_loan):
    loan_id = make_loan(tenant, principal='300', interest_balance='30')

    kinds = []
    for amount in ('30', '100', '100', '100'):
        txn, result, loan = record_repayment(tenant.id, loan_id, Decimal(amount))
        kinds.append(txn.kind)

    assert kinds == ['partial', 'partial', 'partial', 'settlement']
    assert loan.status == 'settled'

    with pytest.raises(LoanAlreadySettled):
        record_repayment(tenant.id, loan_id, Decimal('1'))
    assert RepaymentTxn.query.filter_by(loan_id=loan_id).count() == 4
