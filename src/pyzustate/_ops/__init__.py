"""Pure collection operations (internal)."""
