"""Content-acquisition pipeline for product discovery."""
