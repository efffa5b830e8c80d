"""AWS provider helpers."""
