"""Infrastructure adapters for neo-rbac."""
