"""Terminal user interface for Eリピ."""
