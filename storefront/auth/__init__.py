"""Accounts, password hashing and session tokens."""
