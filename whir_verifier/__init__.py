"""Staged verification of WHIR-style polynomial evaluation proofs."""

__version__ = "0.1.0"
