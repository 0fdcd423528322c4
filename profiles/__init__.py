"""
User profile service.

The profile service is a Flask application that provides a JSON API for
account registration, login, and management of a multi-section professional
profile (About Me, Education, Experience, Portfolio, Projects, Skills,
Certifications).

Context
-------
Users create an account with an e-mail address, a password and their full
name. Credentials live in a relational database (the credential store). When
a user logs in they are issued an opaque session token. That token is
registered in a key-value store (the session store) with a fixed time to
live, and the client presents it on every subsequent request. There is no
in-process session state: every request is re-authenticated against the
session store, so that logging out takes effect immediately.

Profile data is kept in a separate set of tables (the profile document
store), one per section. Every read and write against those tables is scoped
by the id of the authenticated user, which is only ever taken from the
session store.
"""
