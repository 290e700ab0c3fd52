"""Top level package for the DGII (República Dominicana) fiscal tools.

The pure helpers (identifiers, NCF, ITBIS and report rendering) have no
side effects; the registry importer is the only component touching storage.
"""

__version__ = "1.0.0"

__all__ = [
    "cli",
    "commands",
    "config",
    "identifiers",
    "itbis",
    "logging",
    "ncf",
    "registry",
    "reporting",
    "transactions",
    "utils",
]
