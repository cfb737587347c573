"""Loans blueprint"""
from flask import Blueprint

loans_bp = Blueprint('loans', __name__)

from cr3dify.loans import routes  # noqa: E402,F401
