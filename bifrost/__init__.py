"""Bifrost: materialize a project into the bifrost container and run it there."""

__version__ = "0.1.0"
