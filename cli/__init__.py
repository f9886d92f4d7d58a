"""Typer command-line interface for faqbot."""
