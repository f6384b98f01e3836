"""
Main entry point for the SQL rightsizing package.
This allows running the package with: python -m sql_rightsizing
"""

from .console import main_sync

if __name__ == "__main__":
    main_sync()
