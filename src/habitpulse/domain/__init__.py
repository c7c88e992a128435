"""Domain types: recurrence policies and repository protocols."""
