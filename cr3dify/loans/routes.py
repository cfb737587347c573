"""Loan management routes"""
from decimal import Decimal
from flask import request, jsonify, current_app
from flask_login import login_required
from sqlalchemy.orm.exc import StaleDataError
from cr3dify import db
from cr3dify.allocation import LoanStatus, DepositPolicy
from cr3dify.loans import loans_bp
from cr3dify.loans.forms import LoanForm, LoanUpdateForm
from cr3dify.models import Loan, Client
from cr3dify.repayments.service import ConcurrentModification
from cr3dify.utils.decorators import write_required
from cr3dify.utils.helpers import (get_current_tenant_id, paginated_response, parse_date_arg,
                                   validation_error, log_activity)

def get_tenant_loan_or_404(loan_id):
    return Loan.query.filter_by(id=loan_id, tenant_id=get_current_tenant_id()).first_or_404(
        description='Loan not found')

def status_distribution(tenant_id):
    """Count loans per status with whole-number percentages"""
    rows = (db.session.query(Loan.status, db.func.count(Loan.id))
            .filter(Loan.tenant_id == tenant_id)
            .group_by(Loan.status)
            .all())
    total = sum(count for _, count in rows)
    return [{
        'status': status,
        'count': count,
        'percentage': round(count * 100 / total) if total else 0
    } for status, count in rows]

@loans_bp.route('', methods=['GET'])
@login_required
def list_loans():
    """List loans"""
    tenant_id = get_current_tenant_id()

    if request.args.get('groupBy') == 'status':
        return jsonify({'data': status_distribution(tenant_id)})

    status = request.args.get('status', '', type=str)
    client_id = request.args.get('client_id', type=int)
    date_from = parse_date_arg('from')
    date_to = parse_date_arg('to')

    query = Loan.query.filter_by(tenant_id=tenant_id)

    if status:
        query = query.filter_by(status=status)

    if client_id:
        query = query.filter_by(client_id=client_id)

    if date_from:
        query = query.filter(Loan.created_at >= date_from)
    if date_to:
        query = query.filter(Loan.created_at <= date_to)

    query = query.order_by(Loan.created_at.desc(), Loan.id.desc())
    return paginated_response(query, lambda loan: loan.to_dict())

@loans_bp.route('', methods=['POST'])
@login_required
@write_required
def add_loan():
    """Originate a new loan"""
    form = LoanForm()

    if not form.validate_on_submit():
        return validation_error(form)

    tenant_id = get_current_tenant_id()
    client = Client.query.filter_by(id=form.client_id.data, tenant_id=tenant_id).first_or_404(
        description='Client not found')

    if client.status != 'active':
        return jsonify({
            'error': f'Client status is {client.status}; loans can only be created for active clients',
            'code': 'client_inactive'
        }), 400

    principal = form.principal.data
    disbursed = form.disbursed.data

    # Calculate initial balances
    interest_amount = principal - disbursed if form.deduct_interest.data else Decimal('0')
    if form.collect_deposit.data:
        deposit_amount = form.deposit_amount.data or Decimal('0')
        deposit_policy = form.deposit_policy.data or DepositPolicy.NONE.value
    else:
        deposit_amount = Decimal('0')
        deposit_policy = DepositPolicy.NONE.value

    loan = Loan(
        tenant_id=tenant_id,
        client_id=client.id,
        principal=principal,
        disbursed=disbursed,
        principal_balance=principal,
        interest_balance=interest_amount,
        deposit_amount=deposit_amount,
        deposit_policy=deposit_policy,
        status=LoanStatus.NORMAL.value
    )
    db.session.add(loan)
    db.session.flush()

    log_activity(
        action='create_loan',
        entity_type='loan',
        entity_id=loan.id,
        description=f'Created loan {loan.id} for client {client.full_name}: principal {principal}, disbursed {disbursed}'
    )
    db.session.commit()

    current_app.logger.info('Created loan %s for client %s (tenant %s)', loan.id, client.id, tenant_id)
    return jsonify({'data': loan.to_dict()}), 201

@loans_bp.route('/<int:id>', methods=['GET'])
@login_required
def view_loan(id):
    """View loan details"""
    loan = get_tenant_loan_or_404(id)
    return jsonify({'data': loan.to_dict()})

@loans_bp.route('/<int:id>', methods=['PATCH'])
@login_required
@write_required
def update_loan(id):
    """Correct a loan's status or balances by hand (collections workflow)"""
    loan = get_tenant_loan_or_404(id)
    form = LoanUpdateForm()

    if not form.validate_on_submit():
        return validation_error(form)

    status = form.status.data if form.status.raw_data else loan.status
    principal_balance = (form.principal_balance.data if form.principal_balance.raw_data
                         else Decimal(loan.principal_balance))
    interest_balance = (form.interest_balance.data if form.interest_balance.raw_data
                        else Decimal(loan.interest_balance))

    if loan.status == LoanStatus.SETTLED.value and status != LoanStatus.SETTLED.value:
        return jsonify({'error': 'Settled loans cannot be reopened', 'code': 'loan_already_settled'}), 400

    if principal_balance > Decimal(loan.principal):
        return jsonify({'error': 'Principal balance cannot exceed principal', 'code': 'invalid_balance'}), 400

    if status == LoanStatus.SETTLED.value and (principal_balance or interest_balance):
        return jsonify({
            'error': 'A settled loan must have zero principal and interest balances',
            'code': 'invalid_balance'
        }), 400

    changes = []
    if status != loan.status:
        changes.append(f'status {loan.status} -> {status}')
    if principal_balance != Decimal(loan.principal_balance):
        changes.append(f'principal_balance {loan.principal_balance} -> {principal_balance}')
    if interest_balance != Decimal(loan.interest_balance):
        changes.append(f'interest_balance {loan.interest_balance} -> {interest_balance}')

    if not changes:
        return jsonify({'data': loan.to_dict()})

    loan.status = status
    loan.principal_balance = principal_balance
    loan.interest_balance = interest_balance

    log_activity(
        action='update_loan',
        entity_type='loan',
        entity_id=loan.id,
        description=f'Updated loan {loan.id}: ' + ', '.join(changes)
    )

    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        raise ConcurrentModification(f'Loan {id} was modified concurrently; reload and try again')

    current_app.logger.info('Loan %s updated: %s', loan.id, ', '.join(changes))
    return jsonify({'data': loan.to_dict()})
