"""Utility helpers for textreplace."""
