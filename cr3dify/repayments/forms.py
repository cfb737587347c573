"""Repayment forms"""
from flask_wtf import FlaskForm
from wtforms.validators import DataRequired, ValidationError
from cr3dify.utils.fields import IdField, MoneyField, MaxDecimalPlaces

class RepaymentForm(FlaskForm):
    """Repayment against a single loan"""
    loan_id = IdField('Loan ID', validators=[DataRequired()])
    # Sign is checked by the allocator so that zero and negative amounts
    # surface as invalid_amount rather than a missing field
    amount_in = MoneyField('Repayment Amount', validators=[MaxDecimalPlaces(2)])

    def validate_amount_in(self, field):
        if field.data is None and not field.errors:
            raise ValidationError('This field is required.')
