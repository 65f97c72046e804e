"""Subcommands of the pdf-text-extract command line interface."""
