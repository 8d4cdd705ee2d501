"""Core sandbox orchestration."""
