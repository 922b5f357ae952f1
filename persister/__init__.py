"""Durable store for user sessions and their client sessions."""
