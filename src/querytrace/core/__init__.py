"""Core infrastructure: configuration, logging, canonical JSON, plan loading."""
