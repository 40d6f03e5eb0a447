"""Synchronise n8n workflows between local JSON/YAML files and an n8n instance through a caller-supplied client."""

__version__ = "0.1.0"