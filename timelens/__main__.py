"""
Entry point for python -m timelens.

  python -m timelens analyze demo.mp4 --mode chart --query excitement --svg chart.svg
  python -m timelens modes
"""
import sys

from timelens.cli import main

sys.exit(main())
