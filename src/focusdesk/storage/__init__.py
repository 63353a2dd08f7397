"""
Persistent store.

Components:
- database.py: SQLite Database (transactions, savepoints, migrations)
- schema.sql: idempotent schema applied at startup
"""
