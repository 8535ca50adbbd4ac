"""Chat command handlers registered with the machine."""
