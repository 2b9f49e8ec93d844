"""
Lifecycle and governance services.
"""
