"""Database models for CR3DIFY"""
import secrets
from datetime import datetime
from decimal import Decimal
from flask import jsonify
from flask_login import UserMixin
from cr3dify import db, login_manager
from cr3dify.allocation import LoanSnapshot, LoanStatus, DepositPolicy

def money(value):
    """Serialize a Numeric column as a two-decimal string"""
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal('0.01')))

def isoformat(value):
    return value.isoformat() if value else None

@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))

@login_manager.request_loader
def load_user_from_request(request):
    """Resolve the tenant account from an ``Authorization: Bearer`` header"""
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return User.query.filter_by(api_token=token.strip(), is_active=True).first()

@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Unauthorized', 'code': 'unauthorized'}), 401

# Account Models
class User(UserMixin, db.Model):
    """Tenant account; every business row is scoped to one"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(20))
    avatar_url = db.Column(db.String(255))
    api_token = db.Column(db.String(64), unique=True, index=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    clients = db.relationship('Client', backref='tenant', lazy='dynamic')
    loans = db.relationship('Loan', backref='tenant', lazy='dynamic')

    def rotate_api_token(self):
        """Issue a fresh API token, invalidating the previous one"""
        self.api_token = secrets.token_hex(32)
        return self.api_token

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'phone': self.phone,
            'avatar_url': self.avatar_url,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<User {self.username}>'

# Client Model
class Client(db.Model):
    """Borrower record"""
    __tablename__ = 'clients'
    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'ic_number', name='uq_clients_tenant_ic_number'),
    )

    STATUSES = ('active', 'inactive', 'suspended')

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    full_name = db.Column(db.String(200), nullable=False, index=True)
    ic_number = db.Column(db.String(30), nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(120))
    address = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default='active')  # active, inactive, suspended

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    loans = db.relationship('Loan', backref='client', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'ic_number': self.ic_number,
            'phone': self.phone,
            'email': self.email,
            'address': self.address,
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def to_summary(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'ic_number': self.ic_number,
            'phone': self.phone,
        }

    def __repr__(self):
        return f'<Client {self.ic_number} - {self.full_name}>'

# Loan Models
class Loan(db.Model):
    """Loan with separately tracked principal and interest balances"""
    __tablename__ = 'loans'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id'), nullable=False, index=True)

    principal = db.Column(db.Numeric(15, 2), nullable=False)  # Original borrowed amount
    disbursed = db.Column(db.Numeric(15, 2), nullable=False)  # Amount handed to the client
    principal_balance = db.Column(db.Numeric(15, 2), nullable=False)
    interest_balance = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    deposit_amount = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    deposit_policy = db.Column(db.String(20), nullable=False, default=DepositPolicy.NONE.value)
    status = db.Column(db.String(20), nullable=False, default=LoanStatus.NORMAL.value, index=True)

    # Bumped on every UPDATE; a mismatch at flush time raises StaleDataError
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    repayments = db.relationship('RepaymentTxn', backref='loan', lazy='dynamic',
                                 order_by='RepaymentTxn.created_at.desc()')

    __mapper_args__ = {'version_id_col': version_id}

    def snapshot(self):
        """Immutable view of the current balances for the allocator"""
        return LoanSnapshot(
            principal=Decimal(self.principal),
            principal_balance=Decimal(self.principal_balance),
            interest_balance=Decimal(self.interest_balance or 0),
            deposit_amount=Decimal(self.deposit_amount or 0),
            deposit_policy=self.deposit_policy or DepositPolicy.NONE.value,
            status=self.status,
        )

    def to_dict(self, include_client=True):
        data = {
            'id': self.id,
            'client_id': self.client_id,
            'principal': money(self.principal),
            'disbursed': money(self.disbursed),
            'principal_balance': money(self.principal_balance),
            'interest_balance': money(self.interest_balance),
            'deposit_amount': money(self.deposit_amount),
            'deposit_policy': self.deposit_policy,
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_client and self.client is not None:
            data['client'] = self.client.to_summary()
        return data

    def __repr__(self):
        return f'<Loan {self.id} {self.status}>'

class RepaymentTxn(db.Model):
    """Append-only repayment transaction log"""
    __tablename__ = 'repayment_txn'

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    loan_id = db.Column(db.Integer, db.ForeignKey('loans.id'), nullable=False, index=True)

    amount_in = db.Column(db.Numeric(15, 2), nullable=False)
    alloc_interest = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    alloc_principal = db.Column(db.Numeric(15, 2), nullable=False, default=0)
    kind = db.Column(db.String(20), nullable=False)  # regular, partial, settlement

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self, include_loan=True):
        data = {
            'id': self.id,
            'loan_id': self.loan_id,
            'amount_in': money(self.amount_in),
            'alloc_interest': money(self.alloc_interest),
            'alloc_principal': money(self.alloc_principal),
            'kind': self.kind,
            'created_at': isoformat(self.created_at),
        }
        if include_loan and self.loan is not None:
            data['loan'] = {
                'id': self.loan.id,
                'principal': money(self.loan.principal),
                'principal_balance': money(self.loan.principal_balance),
                'interest_balance': money(self.loan.interest_balance),
                'client': self.loan.client.to_summary() if self.loan.client else None,
            }
        return data

    def __repr__(self):
        return f'<RepaymentTxn {self.id} {self.kind}>'

# Activity Log Model
class ActivityLog(db.Model):
    """Activity log for audit trail"""
    __tablename__ = 'activity_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), index=True)
    action = db.Column(db.String(100), nullable=False)
    entity_type = db.Column(db.String(50))  # client, loan, repayment
    entity_id = db.Column(db.Integer)
    description = db.Column(db.Text)
    ip_address = db.Column(db.String(50))
    user_agent = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<ActivityLog {self.action}>'
