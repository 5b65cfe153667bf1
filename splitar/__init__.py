"""
splitar package
- Splits a tar stream into size-bounded volumes that extract independently, never splitting a file.
"""
__all__ = ["cli", "config", "orchestrator", "chunker", "volume", "registry", "accountant", "archiver", "sink", "interrupt", "listing", "util", "types", "errors"]
__version__ = "0.2.0"
