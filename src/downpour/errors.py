class ConfigurationError(ValueError):
    """Raised when a run cannot be scheduled from the settings it was given."""
