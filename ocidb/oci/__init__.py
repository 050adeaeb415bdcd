"""Low-level access to the Oracle Call Interface."""
