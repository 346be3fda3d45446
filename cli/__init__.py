"""Command line tools for running and poking at the sensor simulator."""
