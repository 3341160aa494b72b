"""HTTP job-control surface."""
