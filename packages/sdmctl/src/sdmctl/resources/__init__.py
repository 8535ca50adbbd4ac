"""Files copied into projects by autofixes."""
