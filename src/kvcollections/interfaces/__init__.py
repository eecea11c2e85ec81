"""Protocols for the store and for collections."""
