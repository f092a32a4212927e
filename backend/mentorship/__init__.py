"""Mentorship backend API client and request payloads."""
