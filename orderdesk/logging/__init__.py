"""Console logging and the structured error log."""
