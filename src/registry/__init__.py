"""Package source registries."""
