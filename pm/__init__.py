"""pm - Pacman-style plugin manager for plughost."""
