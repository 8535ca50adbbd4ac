"""Event handlers registered with the machine."""
