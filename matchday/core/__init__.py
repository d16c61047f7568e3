"""Core module for the matchday application."""

from .transactions import run_in_transaction
from .types import APIResponse, FirestoreDocument

__all__ = ["FirestoreDocument", "APIResponse", "run_in_transaction"]
