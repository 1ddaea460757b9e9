"""
Desktop UI pieces used by the workspace core.
"""
