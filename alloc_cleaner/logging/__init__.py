"""Console logging setup and the JSON Lines validation error log."""
