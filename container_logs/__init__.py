"""Real-time Docker/Podman log streaming over websockets."""

__version__ = "0.1.0"
