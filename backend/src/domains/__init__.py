"""Custom domain mappings and DNS ownership verification."""
