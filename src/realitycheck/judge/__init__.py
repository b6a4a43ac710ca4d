"""Completion judge: prompt construction, process protocol and verdict parsing."""
