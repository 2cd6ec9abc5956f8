"""SQLite-backed persistence."""
