"""Worker job handlers."""
