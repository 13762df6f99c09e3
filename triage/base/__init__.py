# ============================================================================
# triage/base/__init__.py
# Foundational components the rest of the engine depends on.
# ============================================================================
#
# WHAT'S IN THIS MODULE:
# - config.py: Engine configuration (stream, policy, correlation, logging)
# - clock.py: Clock abstraction for cancelable timers (asyncio or virtual)
#
# ============================================================================
