"""OpenStack Cluster Teardown - dependency-ordered deletion of cluster resources."""

__version__ = "0.1.0"
