"""Request controllers for the profile service."""
