"""Core domain: models, ports and pure aggregation logic."""
