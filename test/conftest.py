"""Shared fixtures: an in-memory app, tenant accounts and seed helpers"""
import itertools
from decimal import Decimal
from types import SimpleNamespace

import pytest

from cr3dify import create_app, db
from cr3dify.models import User, Client, Loan

_sequence = itertools.count(1)

@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()

@pytest.fixture
def ctx(app):
    """Application context for tests that talk to the service layer directly"""
    with app.app_context():
        yield app

@pytest.fixture
def api(app):
    return app.test_client()

def _create_tenant(app, username):
    with app.app_context():
        user = User(username=username, email=f'{username}@example.com', full_name=username.title())
        token = user.rotate_api_token()
        db.session.add(user)
        db.session.commit()
        return SimpleNamespace(id=user.id, token=token, headers={'Authorization': f'Bearer {token}'})

@pytest.fixture
def tenant(app):
    return _create_tenant(app, 'lender')

@pytest.fixture
def other_tenant(app):
    return _create_tenant(app, 'rival')

@pytest.fixture
def make_client(app):
    def _make_client(tenant, full_name='Tan Ah Kow', status='active', ic_number=None, phone=None):
        n = next(_sequence)
        with app.app_context():
            client = Client(
                tenant_id=tenant.id,
                full_name=full_name,
                ic_number=ic_number or f'900101-14-{n:04d}',
                phone=phone or f'012-{n:07d}',
                status=status
            )
            db.session.add(client)
            db.session.commit()
            return client.id
    return _make_client

@pytest.fixture
def make_loan(app, make_client):
    def _make_loan(tenant, principal='1000', principal_balance=None, interest_balance='100',
                   status='normal', deposit_amount='0', deposit_policy='none', client_id=None):
        if client_id is None:
            client_id = make_client(tenant)
        with app.app_context():
            loan = Loan(
                tenant_id=tenant.id,
                client_id=client_id,
                principal=Decimal(principal),
                disbursed=Decimal(principal),
                principal_balance=Decimal(principal if principal_balance is None else principal_balance),
                interest_balance=Decimal(interest_balance),
                deposit_amount=Decimal(deposit_amount),
                deposit_policy=deposit_policy,
                status=status
            )
            db.session.add(loan)
            db.session.commit()
            return loan.id
    return _make_loan
