"""AI platform adapters: one collector per platform, looked up via the registry."""
