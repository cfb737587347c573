"""Helper functions"""
import math
from flask import current_app, request, jsonify, abort, has_request_context
from flask_login import current_user
from dateutil import parser as date_parser
from cr3dify import db
from cr3dify.models import ActivityLog

def get_current_tenant_id():
    """Get the tenant ID that scopes every query of this request"""
    if not current_user.is_authenticated:
        return None
    return current_user.id

def get_pagination_args():
    """Read ``page`` and ``pageSize`` from the query string, clamped to sane bounds"""
    page = request.args.get('page', 1, type=int) or 1
    page_size = request.args.get('pageSize', current_app.config['ITEMS_PER_PAGE'], type=int)
    page_size = page_size or current_app.config['ITEMS_PER_PAGE']

    page = max(page, 1)
    page_size = min(max(page_size, 1), current_app.config['MAX_PAGE_SIZE'])
    return page, page_size

def paginated_response(query, serialize):
    """Paginate ``query`` and render it in the list envelope used by every endpoint"""
    page, page_size = get_pagination_args()
    result = query.paginate(page=page, per_page=page_size, error_out=False)

    return jsonify({
        'data': [serialize(item) for item in result.items],
        'total': result.total,
        'page': page,
        'pageSize': page_size,
        'totalPages': math.ceil(result.total / page_size) if result.total else 0
    })

def parse_date_arg(name):
    """Parse an optional ISO date/datetime query argument, aborting with 400 on garbage"""
    value = request.args.get(name, '', type=str).strip()
    if not value:
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError):
        abort(400, description=f'Invalid date for "{name}": {value}')

def validation_error(form):
    """Render WTForms errors as a 400 response"""
    return jsonify({
        'error': 'Validation failed',
        'code': 'validation_error',
        'fields': form.errors
    }), 400

def log_activity(action, entity_type=None, entity_id=None, description=None, user_id=None):
    """Stage an audit trail entry in the current session

    The caller owns the transaction: the entry is committed (or rolled
    back) together with the change it describes.
    """
    in_request = has_request_context()
    if user_id is None and in_request and current_user.is_authenticated:
        user_id = current_user.id

    log = ActivityLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        ip_address=request.remote_addr if in_request else None,
        user_agent=request.user_agent.string[:255] if in_request else None
    )
    db.session.add(log)
    return log
