"""Security event logging."""
