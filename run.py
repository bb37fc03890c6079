"""Run the SessionCore wrapper."""

from sessioncore.main import main

if __name__ == "__main__":
    main()
