"""Feature modules for neo-rbac."""
