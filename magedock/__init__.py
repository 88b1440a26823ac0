"""magedock — local Magento 2 environments on Docker Compose."""

__version__ = "0.1.0"
