"""Curation operator — reconciles the curator subsystem of a ClusterLogging."""

__version__ = "0.1.0"
