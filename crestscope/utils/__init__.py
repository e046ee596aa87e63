"""Small helpers shared across CrestScope."""
