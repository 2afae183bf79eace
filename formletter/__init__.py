"""Near-duplicate clustering for mass-campaign regulatory comments."""

__version__ = "0.1.0"
