"""Adapters — bindings to the external tools magedock shells out to."""
