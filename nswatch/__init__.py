"""Watch Kubernetes pods grouped by namespace, with collapsible namespaces."""

__version__ = "0.1.0"
