"""Batch appliers for externally produced change plans."""
