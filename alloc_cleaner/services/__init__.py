"""Session, batch orchestration, export and reporting services."""
