"""SQL toolkit backends."""
