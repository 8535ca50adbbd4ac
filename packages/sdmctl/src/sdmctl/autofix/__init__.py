"""Autofix registrations applied by the autofix goal."""
