"""Desktop front-end: preview window and haptic feedback."""
