"""flugen: companion-file generator for annotated Dart classes."""

__version__ = "0.3.0"
