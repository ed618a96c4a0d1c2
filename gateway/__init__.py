"""RBAC gateway: credential login, bearer tokens and role-based permission checks."""
