"""Provider reply schemas."""
