"""Payment gateway port and adapters."""
