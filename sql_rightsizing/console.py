"""
Console script entry point for the SQL rightsizing package.
"""
import asyncio
import sys

def main_sync():
    """Synchronous wrapper for the async main function"""
    try:
        from sql_rightsizing.cli import main
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)

if __name__ == "__main__":
    main_sync()
