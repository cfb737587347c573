"""Account forms"""
from flask_wtf import FlaskForm
from wtforms.validators import Optional, Length, URL, ValidationError
from cr3dify.utils.fields import TextField

PROFILE_FIELDS = ('full_name', 'phone', 'avatar_url')

class ProfileForm(FlaskForm):
    """Profile update; only the fields present in the body are changed"""
    full_name = TextField('Full Name', validators=[Length(max=200)])
    phone = TextField('Phone', validators=[Optional(), Length(max=20)])
    avatar_url = TextField('Avatar URL', validators=[Optional(), URL(), Length(max=255)])

    def validate_full_name(self, field):
        if field.raw_data and not field.data and not field.errors:
            raise ValidationError('Full name cannot be empty.')

    def submitted_fields(self):
        return [name for name in PROFILE_FIELDS if self[name].raw_data]
