#!/usr/bin/env python3
"""
Daily Activity Log

Log, search and summarize daily activities stored as one JSON file per day
in a GitHub repository.
"""

from dailylog.cli.main import main

if __name__ == "__main__":
    main()
