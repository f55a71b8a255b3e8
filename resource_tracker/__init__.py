"""Argo CD resource tracker."""

__version__ = "0.1.0"
