"""covmerge command-line interface."""
