"""Shared plumbing: settings, database, errors and logging."""
