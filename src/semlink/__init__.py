"""semlink: semantic resource linking for a personal knowledge base."""
