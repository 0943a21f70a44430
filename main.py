#!/usr/bin/env python3
"""
Main entry point for the monetary policy transmission SVAR.

This module serves as the primary entry point for the analysis.
It delegates to scripts/replicate.py which contains the full pipeline.

Usage:
    uv run main.py                  # Run full analysis
    uv run main.py --data-only      # Only fetch and save data
    uv run main.py --refresh-data   # Force refresh data from sources
    uv run main.py --skip-plots     # Estimate without writing figures
"""

from scripts.replicate import main as run_analysis


def main():
    """Run the monetary policy SVAR analysis."""
    run_analysis()


if __name__ == "__main__":
    main()
