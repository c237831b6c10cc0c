"""Core interfaces/abstractions.

Why:
- Defines the contracts (Protocol) that concrete commands implement.
- The CLI depends on abstractions, not on a specific command.
"""
