"""Token migration grouping & threshold analytics."""
