"""HTTP surface for the interaction store."""
