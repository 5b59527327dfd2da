class InputError(ValueError):
    """Invalid grouping specification or analytics parameter."""
