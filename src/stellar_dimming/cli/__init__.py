"""Command-line interface (`sdim`)."""
