"""Domain model and service layer for the Team Player productivity tracker."""

__version__ = "0.1.0"
