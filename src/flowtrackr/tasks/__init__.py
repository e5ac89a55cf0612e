"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Project, StatusEntry, TaskPatch, ...)
- scoring.py: priority score and bucket
- quick_add.py: quick-add token grammar
- validation.py: name/label/level rules
- task_api.py: create/update/delete/move
- owners.py, projects.py, statuses.py: registries and scopes
- timer.py: focus timer
- views.py: filtered/sorted board views
- task_store.py: load/flush through a key-value store
"""
