"""Allow running as ``python -m smart_approve``."""

from smart_approve.hook import main

if __name__ == "__main__":
    main()
