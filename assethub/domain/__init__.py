"""Domain layer: file status enum and business exceptions."""
