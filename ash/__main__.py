"""
Run ash as a module: python -m ash
"""

from .cli import main

if __name__ == "__main__":
    main()
