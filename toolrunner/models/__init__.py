"""Data models shared by the orchestrator, tools and model clients."""
