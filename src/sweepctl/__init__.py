"""Create a W&B sweep and deploy its agents onto Kubernetes."""

__version__ = "0.1.0"
