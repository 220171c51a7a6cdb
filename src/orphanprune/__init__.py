"""orphanprune - find and safely remove unreachable modules and exports."""

__version__ = "0.3.0"
