"""
Gull Licensing API
SQLAlchemy models package.

The shared ``db`` extension object lives here so every model module can do
``from gulls_api.models import db`` without import cycles.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
