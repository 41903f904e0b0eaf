"""Code shared by the back-office services: config, persistence, auth and domain services."""
