"""Domain models, reference data and errors."""
