"""Generation service access: providers, error classification and retry policy."""
