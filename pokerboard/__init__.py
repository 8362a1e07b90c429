"""Pokerboard: home poker session tracker."""

__version__ = "1.0.0"
