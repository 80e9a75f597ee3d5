"""Volvo On Call endpoint modules (internal)."""
