"""
Test suite for the Task Manager API.

This package contains:
- unit/: token, rate limiter, guard, model and validation logic
- integration/: HTTP-level tests through the Flask test client
- security/: owner scoping, token tampering and input hardening
- smoke/: checks against a running server
"""
