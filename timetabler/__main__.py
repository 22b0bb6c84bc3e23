"""
Entry point for running timetabler as a module.

Usage:
    python -m timetabler --data school.json --db timetable.db generate "JS1 silver"
    python -m timetabler validate school.json
"""

from timetabler.cli import main

if __name__ == "__main__":
    main()
