"""
Entry point for running SOV Watcher as a module.

Enables execution via:
    python -m sov_watcher [command] [options]

Examples:
    python -m sov_watcher --help
    python -m sov_watcher calculate --input examples/answers.yaml
    python -m sov_watcher validate --config examples/settings.yaml
"""

from sov_watcher.cli import app

if __name__ == "__main__":
    app()
