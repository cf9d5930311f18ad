"""Persistence of the inventory document."""
