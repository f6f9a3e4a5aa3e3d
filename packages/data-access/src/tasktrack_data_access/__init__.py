"""Data Access: SQLAlchemy Core tables and the credential and task stores."""
