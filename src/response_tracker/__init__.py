"""GitHub issue and pull request first-response time tracker."""

__version__ = "0.1.0"
