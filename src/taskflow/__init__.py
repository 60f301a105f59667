"""taskflow - invite-gated access control for the taskflow project tracker."""

__version__ = "0.1.0"
