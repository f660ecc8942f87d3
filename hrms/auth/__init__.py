"""Authentication: Google login, JWT sessions, role checks."""
