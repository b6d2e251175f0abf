"""Veterinary clinic management backend."""
