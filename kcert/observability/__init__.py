"""Logging and metrics for kcert."""
