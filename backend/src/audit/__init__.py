"""Append-only audit logging."""
