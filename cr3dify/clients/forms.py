"""Client forms"""
from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, TextAreaField
from wtforms.validators import DataRequired, Email, Optional, Length

class ClientForm(FlaskForm):
    """Client registration form"""
    full_name = StringField('Full Name', validators=[DataRequired(), Length(max=200)])
    ic_number = StringField('IC Number', validators=[DataRequired(), Length(max=30)])
    phone = StringField('Phone', validators=[DataRequired(), Length(max=20)])
    email = StringField('Email', validators=[Optional(), Email(), Length(max=120)])
    address = TextAreaField('Address', validators=[Optional()])
    status = SelectField('Status', choices=[
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('suspended', 'Suspended')
    ], validators=[Optional()], default='active')
