"""Web surface of the fleet tracker."""
