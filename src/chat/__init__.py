"""Chat request handling: routing, prompts, data version and composition."""
