"""
Package entry point.

Allows running the application via:

    python -m coursesync

This simply forwards execution to coursesync.cli.main().
"""

from coursesync.cli import main

if __name__ == "__main__":
    main()
