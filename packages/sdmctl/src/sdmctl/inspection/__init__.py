"""Code inspections and review listeners."""
