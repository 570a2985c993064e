"""Online booking and back office for a single massage studio."""
