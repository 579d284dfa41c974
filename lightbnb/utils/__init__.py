"""Presentation helpers for listings and reservations."""
