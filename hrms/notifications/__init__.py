"""Notifications: in-app inbox and e-mail delivery."""
