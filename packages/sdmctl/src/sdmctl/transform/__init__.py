"""Code transforms offered as chat commands."""
