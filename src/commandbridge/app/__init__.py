"""Application services of the command bridge."""
