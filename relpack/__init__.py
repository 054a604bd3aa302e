"""Package OTP releases for AWS Lambda."""

__version__ = "1.0.0"
