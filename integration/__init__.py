"""Integration package.

IMPORTANT:
Run CLI entrypoints via module execution from the repository root, e.g.:
  python3 -m integration.launch_token --name "My Token" --ticker MYT

This avoids Python import-path ambiguity when running files by relative path.
"""
