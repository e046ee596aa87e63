"""Level metrics derived from sox statistics."""
