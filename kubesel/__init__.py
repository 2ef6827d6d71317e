"""Load, merge and manage kubectl configuration files with per-shell sessions."""

__version__ = "0.0.1"

__all__ = [
    "codec",
    "core",
    "errors",
    "kcutils",
    "kubeconfig",
    "loader",
    "managed",
    "merge",
    "owner",
    "textcomponent",
]