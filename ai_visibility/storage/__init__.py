"""Persistence: one embedded key-value store, several typed views over it."""
