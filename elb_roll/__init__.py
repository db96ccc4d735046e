"""Take an EC2 instance out of its load balancers while a command runs, then restore it."""

__version__ = "1.0.0"
