"""End-to-end tests for the profile service."""
