"""
Access control feature module.

Role hierarchy, account status gate, static permission table and the
project/task decision composers, plus the FastAPI guards built on them.
"""
