"""
Routes package for the Task Manager API.

This package contains route blueprints:
- health: public liveness probe
- auth_api: registration, login and the current user's profile
- tasks_api: owner-scoped task CRUD
"""
