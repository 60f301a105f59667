"""Entrypoints - ways into the taskflow service."""
