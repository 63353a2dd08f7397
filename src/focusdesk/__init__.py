"""
focusdesk: personal task tracking core.

Subpackages:
- storage: SQLite persistent store (transactions, schema, migrations)
- tasks: task/subtask/project/recurring-template stores
- sessions: focus session tracking
- analytics: daily rollups
- archive: time-bucketed archival of aged-out tasks
"""

__version__ = "0.3.0"
