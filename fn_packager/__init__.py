"""fn-packager: build zip artifacts for serverless services and functions."""

__version__ = "0.1.0"
