"""Agent host hook handlers."""
