"""Entry point for running the dashboard as a module."""
from sspa_dashboard.cli import main

if __name__ == "__main__":
    main()
