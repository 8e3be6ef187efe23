"""Content layer: Oracle contracts, prompts, parsing, providers."""
