"""Setup wizard: forms, steps and setup commands."""
