"""Utility modules for the pafcluster pipeline."""
