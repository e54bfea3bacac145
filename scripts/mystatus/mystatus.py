#!/usr/bin/env python3
"""Thin entrypoint for the quota dashboard (python mystatus.py --watch)."""

from __future__ import annotations

from quota_core.app import main


if __name__ == "__main__":
    raise SystemExit(main())
