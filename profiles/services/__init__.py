"""Integrations with the credential, session and profile document stores."""
