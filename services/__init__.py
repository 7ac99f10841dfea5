"""Domain rules for applications, documents and bulk operations."""
