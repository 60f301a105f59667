"""Adapters - Infrastructure implementations of core interfaces.

- auth/: user and invite storage (in-memory, SQLite)
"""
