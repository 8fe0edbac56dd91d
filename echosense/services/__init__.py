"""Support services for the capture pipeline."""
