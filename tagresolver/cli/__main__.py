"""Allow ``python -m tagresolver.cli`` execution."""

from tagresolver.cli.resolve import main

main()
