"""Tests for :mod:`profiles.controllers`."""
