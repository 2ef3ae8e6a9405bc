"""Application layer: services and the list editor."""
