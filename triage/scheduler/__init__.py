# ============================================================================
# triage/scheduler/__init__.py
# Ingestion scheduling.
# ============================================================================
#
# - stream.py: StreamScheduler, the periodic tick that feeds the store
#
