"""frouter - watch directories and route new files by extension."""

__version__ = "0.2.0"
