"""Loan forms"""
from decimal import Decimal
from flask_wtf import FlaskForm
from wtforms import SelectField, BooleanField
from wtforms.validators import DataRequired, Optional, NumberRange, ValidationError
from cr3dify.allocation import LoanStatus, DepositPolicy
from cr3dify.utils.fields import IdField, MoneyField, MaxDecimalPlaces

DEPOSIT_POLICY_CHOICES = [
    (DepositPolicy.NONE.value, 'No Deposit Offset'),
    (DepositPolicy.OFFSET_LAST.value, 'Offset Against Last Installment'),
    (DepositPolicy.OFFSET_FIRST.value, 'Offset Against First Installment')
]

LOAN_STATUS_CHOICES = [
    (LoanStatus.NORMAL.value, 'Normal'),
    (LoanStatus.SETTLED.value, 'Settled'),
    (LoanStatus.NEGOTIATING.value, 'Negotiating'),
    (LoanStatus.BAD_DEBT.value, 'Bad Debt')
]

class LoanForm(FlaskForm):
    """Loan origination form"""
    client_id = IdField('Client ID', validators=[DataRequired()])
    principal = MoneyField('Principal', validators=[DataRequired(), NumberRange(min=Decimal('0.01')), MaxDecimalPlaces(2)])
    disbursed = MoneyField('Disbursed Amount', validators=[DataRequired(), NumberRange(min=Decimal('0.01')), MaxDecimalPlaces(2)])
    deposit_amount = MoneyField('Deposit Amount', validators=[Optional(), NumberRange(min=0), MaxDecimalPlaces(2)], default=0)
    deposit_policy = SelectField('Deposit Policy', choices=DEPOSIT_POLICY_CHOICES,
                                 validators=[Optional()], default=DepositPolicy.NONE.value)
    deduct_interest = BooleanField('Deduct Interest Upfront', default=False)
    collect_deposit = BooleanField('Collect Deposit', default=False)

    def validate_disbursed(self, field):
        # Upfront interest is the gap between principal and the cash handed out
        if self.deduct_interest.data and self.principal.data is not None and field.data is not None:
            if field.data > self.principal.data:
                raise ValidationError('Disbursed amount cannot exceed principal when interest is deducted.')

class LoanUpdateForm(FlaskForm):
    """Manual correction of a loan's status and balances"""
    status = SelectField('Status', choices=LOAN_STATUS_CHOICES, validators=[Optional()])
    principal_balance = MoneyField('Principal Balance', validators=[Optional(), NumberRange(min=0), MaxDecimalPlaces(2)])
    interest_balance = MoneyField('Interest Balance', validators=[Optional(), NumberRange(min=0), MaxDecimalPlaces(2)])
