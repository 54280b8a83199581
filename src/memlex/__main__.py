"""Allow ``python -m memlex``."""

from memlex.cli import main

main()
