"""profilehub: user registration and management service."""
