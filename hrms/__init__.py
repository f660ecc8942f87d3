"""OptiMind HR backend."""
