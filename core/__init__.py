"""
Live-match engine

This package holds the engine proper, independent of HTTP:
- events: typed, immutable match events
- event_log: append-only per-match event storage
- state_machine: match phase and timestamp-derived playing clock
- projection: score, scorers and results recomputed from events
- controller: legality-checked entry point for live-capture actions
- locks: per-match serialization (in process and on the Match row)
"""
