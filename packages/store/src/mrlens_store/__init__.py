"""Tenant-scoped persistence for the mrlens gold knowledge corpus."""
