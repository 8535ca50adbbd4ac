"""Push tests, project hooks and listeners shared by the machine configuration."""
