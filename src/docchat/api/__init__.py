"""HTTP surface for DocChat."""
