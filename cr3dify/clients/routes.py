"""Client management routes"""
from flask import request, jsonify, current_app
from flask_login import login_required
from cr3dify import db
from cr3dify.clients import clients_bp
from cr3dify.clients.forms import ClientForm
from cr3dify.models import Client, Loan
from cr3dify.utils.decorators import write_required
from cr3dify.utils.helpers import get_current_tenant_id, paginated_response, validation_error, log_activity

def get_tenant_client_or_404(client_id):
    return Client.query.filter_by(id=client_id, tenant_id=get_current_tenant_id()).first_or_404(
        description='Client not found')

def ic_number_taken(ic_number, exclude_id=None):
    """Check whether another client of this tenant already uses ``ic_number``"""
    query = Client.query.filter_by(tenant_id=get_current_tenant_id(), ic_number=ic_number)
    if exclude_id is not None:
        query = query.filter(Client.id != exclude_id)
    return db.session.query(query.exists()).scalar()

@clients_bp.route('', methods=['GET'])
@login_required
def list_clients():
    """List all clients"""
    search = request.args.get('query', '', type=str).strip()
    status = request.args.get('status', '', type=str)

    query = Client.query.filter_by(tenant_id=get_current_tenant_id())

    if search:
        query = query.filter(
            db.or_(
                Client.full_name.ilike(f'%{search}%'),
                Client.phone.ilike(f'%{search}%'),
                Client.ic_number.ilike(f'%{search}%')
            )
        )

    if status:
        query = query.filter_by(status=status)

    query = query.order_by(Client.created_at.desc(), Client.id.desc())
    return paginated_response(query, lambda client: client.to_dict())

@clients_bp.route('', methods=['POST'])
@login_required
@write_required
def add_client():
    """Add new client"""
    form = ClientForm()

    if not form.validate_on_submit():
        return validation_error(form)

    ic_number = form.ic_number.data.strip()
    if ic_number_taken(ic_number):
        return jsonify({'error': 'A client with this IC number already exists', 'code': 'duplicate_ic_number'}), 409

    client = Client(
        tenant_id=get_current_tenant_id(),
        full_name=form.full_name.data.strip(),
        ic_number=ic_number,
        phone=form.phone.data.strip(),
        email=form.email.data or None,
        address=form.address.data or None,
        status=form.status.data or 'active'
    )
    db.session.add(client)
    db.session.flush()

    log_activity(
        action='create_client',
        entity_type='client',
        entity_id=client.id,
        description=f'Created client: {client.full_name}'
    )
    db.session.commit()

    current_app.logger.info('Created client %s', client.id)
    return jsonify({'data': client.to_dict()}), 201

@clients_bp.route('/<int:id>', methods=['GET'])
@login_required
def view_client(id):
    """View client details"""
    client = get_tenant_client_or_404(id)
    return jsonify({'data': client.to_dict()})

@clients_bp.route('/<int:id>', methods=['PATCH'])
@login_required
@write_required
def edit_client(id):
    """Edit client"""
    client = get_tenant_client_or_404(id)
    form = ClientForm()

    if not form.validate_on_submit():
        return validation_error(form)

    ic_number = form.ic_number.data.strip()
    if ic_number_taken(ic_number, exclude_id=client.id):
        return jsonify({
            'error': 'This IC number is already used by another client',
            'code': 'duplicate_ic_number'
        }), 409

    client.full_name = form.full_name.data.strip()
    client.ic_number = ic_number
    client.phone = form.phone.data.strip()
    client.email = form.email.data or None
    client.address = form.address.data or None
    if form.status.raw_data:
        client.status = form.status.data

    log_activity(
        action='update_client',
        entity_type='client',
        entity_id=client.id,
        description=f'Updated client: {client.full_name}'
    )
    db.session.commit()

    return jsonify({'data': client.to_dict()})

@clients_bp.route('/<int:id>', methods=['DELETE'])
@login_required
@write_required
def delete_client(id):
    """Delete client without loans"""
    client = get_tenant_client_or_404(id)

    if db.session.query(Loan.query.filter_by(client_id=client.id).exists()).scalar():
        return jsonify({
            'error': 'This client has loan records and cannot be deleted',
            'code': 'client_has_loans'
        }), 409

    log_activity(
        action='delete_client',
        entity_type='client',
        entity_id=client.id,
        description=f'Deleted client: {client.full_name}'
    )
    db.session.delete(client)
    db.session.commit()

    current_app.logger.info('Deleted client %s', id)
    return jsonify({'success': True})
