# =============================================================================
# festifind/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Command-line access to the research orchestrator without any web layer:
#
#   RESEARCH (research.py)
#      Runs one festival research (or the LinkedIn-only shortcut) and prints
#      a text report or JSON.  Also installed as `festifind-research`.
#
# Run with `python -m festifind.cli <festival name>`.
# =============================================================================
