#!/usr/bin/env python3
"""Simple server startup script."""

from backend_gateway.main import main

if __name__ == "__main__":
    main()
