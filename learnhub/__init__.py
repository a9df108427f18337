"""LearnHub e-learning API."""
