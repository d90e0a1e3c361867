"""Snippetbox: share short text snippets, with accounts and server-side sessions."""

__version__ = "0.1.0"
