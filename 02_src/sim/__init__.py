"""Scripted client sessions for exercising the ingest service."""

from .sim import ISim, Sim

__all__ = ["ISim", "Sim"]
