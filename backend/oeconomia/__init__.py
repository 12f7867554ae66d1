"""Oeconomia dashboard backend."""
