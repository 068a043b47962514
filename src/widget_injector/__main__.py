"""
`python -m widget_injector` entrypoint.

This is mainly for convenience; the installed console script `widget-injector`
calls the same `widget_injector.cli:main`.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
