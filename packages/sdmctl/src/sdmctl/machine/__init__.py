"""Machine configuration: goals, goal sets, push rules and language support."""
