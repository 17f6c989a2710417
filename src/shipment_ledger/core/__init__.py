"""Pure domain layer: validation, error taxonomy and failure classification."""
