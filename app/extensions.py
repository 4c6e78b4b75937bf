"""Flask extensions, instantiated once and bound in the app factory."""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
