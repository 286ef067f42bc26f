"""Command line interface for the File Organizer."""
