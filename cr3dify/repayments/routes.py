"""Repayment routes"""
from flask import request, jsonify
from flask_login import login_required
from cr3dify.models import RepaymentTxn, money
from cr3dify.repayments import repayments_bp
from cr3dify.repayments.forms import RepaymentForm
from cr3dify.repayments.service import record_repayment
from cr3dify.utils.decorators import write_required
from cr3dify.utils.helpers import (get_current_tenant_id, paginated_response, parse_date_arg,
                                   validation_error)

@repayments_bp.route('', methods=['GET'])
@login_required
def list_repayments():
    """List repayments, newest first"""
    loan_id = request.args.get('loan_id', type=int)
    date_from = parse_date_arg('from')
    date_to = parse_date_arg('to')
    limit = request.args.get('limit', type=int)

    query = RepaymentTxn.query.filter_by(tenant_id=get_current_tenant_id())

    if loan_id:
        query = query.filter_by(loan_id=loan_id)

    if date_from:
        query = query.filter(RepaymentTxn.created_at >= date_from)
    if date_to:
        query = query.filter(RepaymentTxn.created_at <= date_to)

    query = query.order_by(RepaymentTxn.created_at.desc(), RepaymentTxn.id.desc())

    if limit:
        items = query.limit(max(limit, 1)).all()
        return jsonify({'data': [txn.to_dict() for txn in items]})

    return paginated_response(query, lambda txn: txn.to_dict())

@repayments_bp.route('', methods=['POST'])
@login_required
@write_required
def create_repayment():
    """Record a repayment, applying it to interest first and then principal"""
    form = RepaymentForm()

    if not form.validate_on_submit():
        return validation_error(form)

    txn, result, loan = record_repayment(
        tenant_id=get_current_tenant_id(),
        loan_id=form.loan_id.data,
        amount_in=form.amount_in.data,
        user_id=get_current_tenant_id()
    )

    return jsonify({
        'data': txn.to_dict(),
        'allocation': {
            'interest': money(result.alloc_interest),
            'principal': money(result.alloc_principal),
            'remaining': money(result.remaining)
        },
        'newBalances': {
            'principal': money(result.new_principal_balance),
            'interest': money(result.new_interest_balance)
        },
        'kind': result.kind.value,
        'loanStatus': result.new_status.value,
        'deposit': {
            'amount': money(loan.deposit_amount),
            'policy': loan.deposit_policy
        }
    }), 201
