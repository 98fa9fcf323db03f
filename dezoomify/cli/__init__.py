"""
Command-line interface: the Typer application, the progress display and the
Rich formatters for errors and summaries.
"""
