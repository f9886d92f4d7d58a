"""Sub-command groups mounted on the main Typer app."""
