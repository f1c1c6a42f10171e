"""Lingo classroom: instructor data access and sign-in state over Appwrite."""

__version__ = '0.1.0'
