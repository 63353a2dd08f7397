"""
Archival subsystem.

Components:
- archive_types.py: archive types, category windows, bucket keys
- file_store.py: JSON bucket files
- archive_engine.py: auto/manual sweeps
"""
