"""Committee contributions tracker."""
