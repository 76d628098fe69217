"""
Command-line interface: Typer commands and Rich output helpers.
"""
