"""Hosting plumbing shared by every verb.

Why:
- Environment/base-path resolution and layered configuration are needed by
  both `init` and `host`, so they live in the Core and not in the CLI.
"""
