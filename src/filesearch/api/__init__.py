"""HTTP surface for filesearch."""
