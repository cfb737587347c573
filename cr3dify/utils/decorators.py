"""Utility decorators"""
from functools import wraps
from flask import current_app, jsonify

def write_required(f):
    """Decorator to refuse writes while the API is in read-only mode"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_app.config.get('ENABLE_WRITE'):
            current_app.logger.info('Write refused for %s: writes are disabled', f.__name__)
            return jsonify({
                'error': 'Write operations are disabled (read-only demo mode)',
                'code': 'write_disabled',
                'writeEnabled': False
            }), 403

        return f(*args, **kwargs)
    return decorated_function
