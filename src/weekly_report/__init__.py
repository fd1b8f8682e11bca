"""Weekly report compiler and shared-document synchronizer."""

__version__ = "0.1.0"
