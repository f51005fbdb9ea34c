"""Core configuration, logging and signing primitives."""
