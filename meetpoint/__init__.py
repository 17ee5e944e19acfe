"""Find somewhere to meet halfway between two addresses."""

__version__ = "0.1.0"
