"""Services wrapping git and the optional external tools."""
