# ============================================================================
# triage/utils/__init__.py
# Shared helpers.
# ============================================================================
#
# KEY MODULES:
# - **observer.py**: Signal/Observable pub-sub used by stores and the engine
#
