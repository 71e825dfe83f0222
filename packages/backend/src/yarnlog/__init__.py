"""Yarnlog — per-user project tracking API.

Users register and log in to receive a bearer token, then manage their
own projects. Every project read or write is scoped to its owner.
"""

__version__ = "0.1.0"
