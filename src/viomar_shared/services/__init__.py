"""Domain services of the back-office."""
