"""Medibook appointment scheduling service."""
