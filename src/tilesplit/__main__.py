"""Entry point for tilesplit."""

from tilesplit.preprocess.__main__ import main

if __name__ == "__main__":
    main()
