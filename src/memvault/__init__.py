"""memvault: file-backed memories with graph, index and embedding views."""

__version__ = "0.4.0"
