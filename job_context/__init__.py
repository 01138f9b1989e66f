"""Identify the running GitHub Actions job and its in-progress deployment."""
