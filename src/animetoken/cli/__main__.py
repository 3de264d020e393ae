"""CLI entry point for animetoken.cli module.

Enables execution via: python -m animetoken.cli
"""

from animetoken.cli.cleanup_orphaned_jobs import main

if __name__ == "__main__":
    main()
