"""Repayments blueprint"""
from flask import Blueprint

repayments_bp = Blueprint('repayments', __name__)

from cr3dify.repayments import routes  # noqa: E402,F401
