"""Lokale Portalen news and content-management API."""
