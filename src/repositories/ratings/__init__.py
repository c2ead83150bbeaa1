"""Rating-system repositories."""
