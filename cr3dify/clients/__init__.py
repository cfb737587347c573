"""Clients blueprint"""
from flask import Blueprint

clients_bp = Blueprint('clients', __name__)

from cr3dify.clients import routes  # noqa: E402,F401
