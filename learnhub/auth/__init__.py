"""Bearer token verification and role-based guards."""
