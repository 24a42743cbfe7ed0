"""filesmith -- apply, replay and export chains of file skills."""

__version__ = "0.1.0"
