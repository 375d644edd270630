"""Proxy forwarding and local file access, independent of the HTTP framework wiring."""
