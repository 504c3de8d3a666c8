"""Thin wrappers around the Google Cloud client libraries."""
