# ============================================================================
# triage/engine/__init__.py
# Triage engine: artifact synthesis, triage policy, session facade.
# ============================================================================
#
# - synthesizer.py:   ArtifactSynthesizer, random evidence generation
# - triage_policy.py: TriagePolicyEngine, auto-pilot and manual override
# - orchestrator.py:  TriageEngine, the facade presentation layers use
#
