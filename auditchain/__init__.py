"""Signed file-access audits on a small replicated chain with leader election."""

__version__ = "0.1.0"