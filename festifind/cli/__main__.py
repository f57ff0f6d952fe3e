"""Allow ``python -m festifind.cli`` execution."""

from festifind.cli.research import main

main()
