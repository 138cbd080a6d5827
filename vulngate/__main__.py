"""Allow ``python -m vulngate``."""

from vulngate.cli import main

main()
