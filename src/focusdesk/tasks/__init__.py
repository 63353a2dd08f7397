"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, Session, Project, patches, enums)
- task_store.py: task/subtask CRUD, ordering and cascades
- project_store.py: projects (tasks reference them, never owned)
- recurring_store.py: task templates instantiated on demand
"""
