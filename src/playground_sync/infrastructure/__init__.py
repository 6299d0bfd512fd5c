"""Infrastructure layer: configuration and transport adapters."""
