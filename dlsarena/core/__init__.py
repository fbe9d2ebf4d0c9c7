"""Core module for the dlsarena application."""

from .types import FirestoreDocument

__all__ = ["FirestoreDocument"]
