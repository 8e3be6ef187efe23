"""Oracle providers."""
