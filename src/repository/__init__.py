"""Content repository adapters.

- base.py: the capability interfaces the package pipeline relies on
- local.py: a filesystem/YAML-backed repository
- remote.py: a JSON HTTP API client
"""
