# clarion/main.py
import sys
import os

# Ensure the package root is discoverable when run as a plain script
if __package__ is None and not hasattr(sys, "frozen"):
    path = os.path.realpath(os.path.abspath(__file__))
    sys.path.insert(0, os.path.dirname(os.path.dirname(path)))

from clarion.cli import app

if __name__ == "__main__":
    app()
