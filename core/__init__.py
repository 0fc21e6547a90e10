"""Core framework modules for stratus."""
