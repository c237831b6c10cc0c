"""Core: settings, hosting plumbing, domain records and commands."""
