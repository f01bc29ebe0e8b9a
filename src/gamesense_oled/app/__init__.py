"""Applications built on the GameSense client."""
