"""Infrastructure layer: persistence, integrations, notifications, observability."""
