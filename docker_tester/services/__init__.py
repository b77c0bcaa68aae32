"""Service layer for docker-tester."""
