"""Command line interface for the sidplayfp configuration file."""
