"""
Agents - one per workflow (planning, shopping, progress).
"""
