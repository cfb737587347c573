"""Custom form fields"""
from decimal import Decimal, InvalidOperation
from wtforms import DecimalField, IntegerField, StringField
from wtforms.validators import ValidationError

# Largest value a Numeric(15, 2) column holds
MAX_AMOUNT = Decimal('9999999999999.99')

class MoneyField(DecimalField):
    """DecimalField that never routes JSON numbers through binary floats

    JSON bodies arrive as Python floats; ``Decimal(str(value))`` keeps the
    literal the client sent (``50.1`` stays ``50.1``).
    """

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        raw = valuelist[0]
        if raw is None or raw == '':
            self.data = None
            return
        if isinstance(raw, bool):
            self.data = None
            raise ValueError(self.gettext('Not a valid decimal value.'))
        try:
            self.data = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            self.data = None
            raise ValueError(self.gettext('Not a valid decimal value.'))
        if not self.data.is_finite():
            self.data = None
            raise ValueError(self.gettext('Not a valid decimal value.'))

    def pre_validate(self, form):
        if self.data is not None and abs(self.data) > MAX_AMOUNT:
            raise ValidationError(f'Amount cannot exceed {MAX_AMOUNT}.')

class IdField(IntegerField):
    """IntegerField that refuses JSON booleans and fractional numbers"""

    def process_formdata(self, valuelist):
        if valuelist:
            raw = valuelist[0]
            if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
                self.data = None
                raise ValueError(self.gettext('Not a valid integer value.'))
        super().process_formdata(valuelist)

class TextField(StringField):
    """StringField that refuses JSON numbers, booleans, lists and objects"""

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        raw = valuelist[0]
        if raw is not None and not isinstance(raw, str):
            self.data = None
            raise ValueError('Not a valid string value.')
        self.data = raw.strip() if raw is not None else None

class MaxDecimalPlaces:
    """Reject amounts with more fractional digits than the ledger stores"""

    def __init__(self, places=2, message=None):
        self.places = places
        self.message = message

    def __call__(self, form, field):
        if field.data is None:
            return
        if field.data.as_tuple().exponent < -self.places:
            message = self.message or f'At most {self.places} decimal places are allowed.'
            raise ValidationError(message)
