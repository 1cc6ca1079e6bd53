"""
Token cache package.

A single advisory record, the current OneMap access token, stored under a
fixed key with a per-write expiration shorter than the token's lifetime.
"""
