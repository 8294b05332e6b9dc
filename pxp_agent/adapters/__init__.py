"""Adapters — process, filesystem and broker transport bindings."""
