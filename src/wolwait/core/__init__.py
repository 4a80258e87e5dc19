"""Wake, resolve, probe and wait."""
