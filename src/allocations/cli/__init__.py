"""
Command Line Interface Package

Runs allocation operations over JSON snapshot files.

Command Structure:
- allocations: Main entry point with utility commands (version, config)
- allocations allocate: Allocation operations (auto, edit, reset, rate, total, remove, summary)
"""
