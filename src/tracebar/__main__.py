"""Allow running as python -m tracebar."""

from tracebar.cli import main

if __name__ == "__main__":
    main()
