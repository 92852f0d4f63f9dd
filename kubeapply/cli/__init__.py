"""Command-line interface for kubeapply."""
