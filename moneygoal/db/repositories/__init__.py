"""
Per-domain repository modules.

Each module exposes plain functions taking a Session and keyword arguments;
every user-owned query is filtered by `user_id`.
"""
