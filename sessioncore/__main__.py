"""
Entry point for running the wrapper via `python -m sessioncore`.
"""

from .main import main

if __name__ == "__main__":
    main()
