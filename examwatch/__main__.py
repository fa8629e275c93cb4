"""
`python -m examwatch scrape --out exam-data.json`

Same commands as the `examwatch` console script; see examwatch.cli.
"""

from examwatch.cli import main

if __name__ == "__main__":
    main()
