"""Core exceptions and protocols shared by all neo-rbac features."""
