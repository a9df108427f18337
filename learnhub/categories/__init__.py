"""Course category catalogue."""
