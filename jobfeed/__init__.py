"""Job feed importer: fetch XML job feeds, normalize, combine and publish."""

__version__ = "1.0.0"
