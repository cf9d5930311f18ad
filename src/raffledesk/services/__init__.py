"""Inventory, purchase lifecycle and proof services."""
