"""Utilities shared across the notesync test suites."""
