"""
Utility functions for recordkit.
"""
