"""Session-based authentication dependencies."""
