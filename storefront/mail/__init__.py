"""Outbound email port, adapters and templates."""
