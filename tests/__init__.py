"""notesync test suite."""
