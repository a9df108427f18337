"""Course and product reviews."""
