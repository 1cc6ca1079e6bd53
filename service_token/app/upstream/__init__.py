"""
Upstream OneMap client package.
"""
