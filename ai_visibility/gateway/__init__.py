"""Outbound call pacing for AI providers."""
