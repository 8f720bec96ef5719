"""Command line interface (`moves`)."""
