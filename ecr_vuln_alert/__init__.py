"""Scan ECR image scan results and report vulnerable repositories to Slack."""

__version__ = "0.1.0"
