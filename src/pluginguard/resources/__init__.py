"""Packaged resources for pluginguard."""
