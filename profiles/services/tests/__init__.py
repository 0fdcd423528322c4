"""Tests for :mod:`profiles.services`."""
