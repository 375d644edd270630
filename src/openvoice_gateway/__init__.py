"""OpenVoice Gateway - authenticating reverse proxy for the OpenVoice synthesis service."""

__version__ = "1.0.0"
