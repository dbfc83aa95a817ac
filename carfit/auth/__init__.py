"""Authentication and tenant resolution."""
