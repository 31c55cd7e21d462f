"""DMAT account-opening service."""
