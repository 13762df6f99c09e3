# ============================================================================
# triage/__init__.py
# Evidence Stream Triage Engine
# ============================================================================
#
# PURPOSE:
# Simulates a live digital-forensics triage feed. Synthetic artifacts arrive
# on a timer, are linked into a temporal/attribution graph, and are
# auto-triaged into an incident report when auto-pilot is engaged.
#
# PACKAGE LAYOUT:
# - base/       Configuration and the clock abstraction (timers)
# - data/       Artifact model, artifact store, audit log
# - engine/     Synthesizer, triage policy, engine facade
# - scheduler/  Stream scheduler (ingestion ticks)
# - cortex/     Correlation graph builder
# - reporting/  Incident report composer
# - server/     FastAPI surface for presentation layers
#
# ============================================================================

__version__ = "0.4.0"
