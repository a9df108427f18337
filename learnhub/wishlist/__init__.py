"""Wishlists and shopping carts."""
