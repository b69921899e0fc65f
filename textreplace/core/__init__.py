"""Substitution engine, line processing and in-place file rewriting."""
