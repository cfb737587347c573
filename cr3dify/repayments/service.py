"""Repayment recording: the locked read-allocate-write unit of work"""
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from cr3dify import db
from cr3dify.allocation import allocate, AllocationError
from cr3dify.models import Loan, RepaymentTxn
from cr3dify.utils.helpers import log_activity

class RepaymentError(Exception):
    """Base class for failures around (not inside) the allocator"""
    code = 'repayment_error'
    status_code = 400

class LoanNotFound(RepaymentError):
    code = 'not_found'
    status_code = 404

class ConcurrentModification(RepaymentError):
    code = 'concurrent_modification'
    status_code = 409

def _load_loan_for_update(tenant_id, loan_id):
    return (Loan.query
            .filter_by(id=loan_id, tenant_id=tenant_id)
            .with_for_update()
            .populate_existing()
            .first())

def record_repayment(tenant_id, loan_id, amount_in, user_id=None, max_attempts=None):
    """Allocate a payment against a loan and persist the outcome atomically.

    The loan row is re-read under a row lock on every attempt and the loan's
    version counter is checked when the UPDATE is flushed, so two payments
    against the same loan never both commit against the same balances. A
    version conflict rolls everything back and retries the full cycle.

    Returns:
        (RepaymentTxn, AllocationResult, Loan) once committed

    Raises:
        LoanNotFound: no such loan for this tenant
        InvalidAmount, LoanAlreadySettled: from the allocator, nothing written
        ConcurrentModification: the loan kept changing under every attempt
        SQLAlchemyError: persistence failed, nothing written
    """
    if max_attempts is None:
        max_attempts = current_app.config.get('REPAYMENT_MAX_ATTEMPTS', 3)
    max_attempts = max(int(max_attempts), 1)

    for attempt in range(1, max_attempts + 1):
        try:
            loan = _load_loan_for_update(tenant_id, loan_id)
            if loan is None:
                raise LoanNotFound(f'Loan {loan_id} not found')

            result = allocate(loan.snapshot(), amount_in)

            txn = RepaymentTxn(
                tenant_id=tenant_id,
                loan_id=loan.id,
                amount_in=result.amount_in,
                alloc_interest=result.alloc_interest,
                alloc_principal=result.alloc_principal,
                kind=result.kind.value
            )
            db.session.add(txn)

            loan.principal_balance = result.new_principal_balance
            loan.interest_balance = result.new_interest_balance
            loan.status = result.new_status.value

            log_activity(
                action='create_repayment',
                entity_type='loan',
                entity_id=loan.id,
                description=(f'Repayment of {result.amount_in} for loan {loan.id}: '
                             f'interest {result.alloc_interest}, principal {result.alloc_principal}, '
                             f'{result.kind.value}'),
                user_id=user_id
            )

            db.session.commit()
        except (AllocationError, RepaymentError):
            db.session.rollback()
            raise
        except StaleDataError:
            db.session.rollback()
            current_app.logger.warning(
                'Loan %s changed during repayment (attempt %s/%s)', loan_id, attempt, max_attempts)
            continue
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Failed to record repayment for loan %s', loan_id)
            raise

        current_app.logger.info(
            'Recorded %s repayment %s for loan %s: interest=%s principal=%s remaining=%s status=%s',
            txn.kind, txn.id, loan.id, result.alloc_interest, result.alloc_principal,
            result.remaining, loan.status)
        if result.remaining > 0:
            current_app.logger.info('Loan %s overpaid by %s (unapplied)', loan.id, result.remaining)
        return txn, result, loan

    raise ConcurrentModification(
        f'Loan {loan_id} was modified concurrently; gave up after {max_attempts} attempts')
