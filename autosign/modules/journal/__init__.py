"""
Journal Module - Black Box Interface

Purpose: Guarantee that a one-time token is accepted at most once
Interface: Journal.add(), Journal.get()
Hidden: File format, cross-process locking, atomic replacement

Can be replaced with any store offering an atomic add-if-absent.
"""

from .journal import Journal

__all__ = ["Journal"]
