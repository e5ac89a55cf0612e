"""
Storage subsystem.

Components:
- kv_store.py: SQLite and in-memory key-value backends with a size quota
- snapshot.py: BoardState <-> persisted JSON document
- migrations.py: upgrades older documents to the current version
- flusher.py: periodic background flush
"""
