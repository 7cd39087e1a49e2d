"""Shared core values for the queue drain action."""
SERVICE_NAME = "mqdrain"
