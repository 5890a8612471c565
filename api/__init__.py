"""HTTP control surface for the assistant."""
