"""CLI commands for schemadoc."""
