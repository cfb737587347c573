"""Main routes"""
from datetime import datetime, timedelta
from decimal import Decimal
from flask import jsonify, current_app
from flask_login import login_required, current_user
from sqlalchemy import func
from cr3dify import db
from cr3dify.allocation import LoanStatus
from cr3dify.main import main_bp
from cr3dify.main.forms import ProfileForm
from cr3dify.models import Client, Loan, RepaymentTxn, money
from cr3dify.utils.decorators import write_required
from cr3dify.utils.helpers import get_current_tenant_id, validation_error, log_activity

@main_bp.route('/health')
def health():
    """Liveness probe; also reports whether writes are enabled"""
    return jsonify({
        'status': 'ok',
        'writeEnabled': bool(current_app.config.get('ENABLE_WRITE'))
    })

@main_bp.route('/me', methods=['GET'])
@login_required
def me():
    """The authenticated account"""
    return jsonify({'data': current_user.to_dict()})

@main_bp.route('/me', methods=['PATCH'])
@login_required
@write_required
def update_me():
    """Update the authenticated account's profile"""
    form = ProfileForm()

    if not form.validate_on_submit():
        return validation_error(form)

    fields = form.submitted_fields()
    if not fields:
        return jsonify({'error': 'No data to update', 'code': 'validation_error', 'fields': {}}), 400

    user = current_user._get_current_object()
    for name in fields:
        setattr(user, name, form[name].data or None)

    log_activity(
        action='update_profile',
        entity_type='user',
        entity_id=user.id,
        description='Updated profile: ' + ', '.join(fields)
    )
    db.session.commit()

    current_app.logger.info('Account %s updated profile fields %s', user.id, ', '.join(fields))
    return jsonify({'data': user.to_dict()})

@main_bp.route('/metrics')
@login_required
def metrics():
    """Dashboard metrics for the current tenant"""
    tenant_id = get_current_tenant_id()

    # Client statistics
    client_counts = dict(
        db.session.query(Client.status, func.count(Client.id))
        .filter(Client.tenant_id == tenant_id)
        .group_by(Client.status)
        .all()
    )

    # Loan statistics
    loan_counts = dict(
        db.session.query(Loan.status, func.count(Loan.id))
        .filter(Loan.tenant_id == tenant_id)
        .group_by(Loan.status)
        .all()
    )
    total_principal, outstanding_principal, outstanding_interest = db.session.query(
        func.coalesce(func.sum(Loan.principal), 0),
        func.coalesce(func.sum(Loan.principal_balance), 0),
        func.coalesce(func.sum(Loan.interest_balance), 0)
    ).filter(Loan.tenant_id == tenant_id).one()
    total_principal = Decimal(total_principal)
    outstanding_principal = Decimal(outstanding_principal)
    outstanding_interest = Decimal(outstanding_interest)

    # Repayment statistics
    repayment_count, repayment_amount = db.session.query(
        func.count(RepaymentTxn.id),
        func.coalesce(func.sum(RepaymentTxn.amount_in), 0)
    ).filter(RepaymentTxn.tenant_id == tenant_id).one()

    since = datetime.utcnow() - timedelta(days=30)
    recent_count, recent_amount = db.session.query(
        func.count(RepaymentTxn.id),
        func.coalesce(func.sum(RepaymentTxn.amount_in), 0)
    ).filter(RepaymentTxn.tenant_id == tenant_id, RepaymentTxn.created_at >= since).one()

    if total_principal > 0:
        collection_rate = float((total_principal - outstanding_principal) / total_principal * 100)
    else:
        collection_rate = 0.0

    return jsonify({
        'clients': {
            'total': sum(client_counts.values()),
            'active': client_counts.get('active', 0),
            'inactive': client_counts.get('inactive', 0),
            'suspended': client_counts.get('suspended', 0)
        },
        'loans': {
            'total': sum(loan_counts.values()),
            'active': loan_counts.get(LoanStatus.NORMAL.value, 0),
            'completed': loan_counts.get(LoanStatus.SETTLED.value, 0),
            'negotiating': loan_counts.get(LoanStatus.NEGOTIATING.value, 0),
            'defaulted': loan_counts.get(LoanStatus.BAD_DEBT.value, 0),
            'totalAmount': money(total_principal),
            'outstandingPrincipal': money(outstanding_principal),
            'outstandingInterest': money(outstanding_interest)
        },
        'repayments': {
            'totalCount': repayment_count,
            'totalAmount': money(repayment_amount),
            'last30Days': {
                'count': recent_count,
                'amount': money(recent_amount)
            }
        },
        'summary': {
            'totalOutstanding': money(outstanding_principal + outstanding_interest),
            'collectionRate': round(collection_rate, 2),
            'activeLoansCount': loan_counts.get(LoanStatus.NORMAL.value, 0),
            'negotiatingLoansCount': loan_counts.get(LoanStatus.NEGOTIATING.value, 0)
        }
    })
