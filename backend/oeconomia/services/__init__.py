"""Service layer: storage, external adapters and portfolio computations."""
