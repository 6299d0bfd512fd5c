"""Domain layer: transport-independent broker logic."""
