"""
Role derivation feature module.

Derives per-organization roles from legacy account data and compiles roles
into permission matrices for organization-scoped access control.
"""
