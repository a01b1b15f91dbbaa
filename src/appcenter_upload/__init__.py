"""Upload Android builds and mapping files to App Center."""

__version__ = "0.1.0"
