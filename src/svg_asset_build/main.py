"""Command-line entrypoint."""

from __future__ import annotations

from svg_asset_build.app import run_app


def main() -> None:
    run_app()


if __name__ == "__main__":
    main()
