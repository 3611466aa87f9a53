"""User consent lifecycle."""
