"""Module entry point: python -m fix_sampler ..."""

from __future__ import annotations

from fix_sampler.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
