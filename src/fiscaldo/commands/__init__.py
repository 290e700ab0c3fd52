"""Command line handlers exposed through :mod:`fiscaldo.cli`."""
