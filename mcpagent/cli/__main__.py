"""Allow running as ``python -m mcpagent.cli``."""

from mcpagent.cli import main

if __name__ == "__main__":
    main()
