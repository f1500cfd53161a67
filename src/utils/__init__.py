"""
Shared infrastructure for automerge

Provides:
- database_types: supported SQL dialects and connection sniffing
- logging: structured logging setup
- metrics: Prometheus counters and histograms
- tracing: OpenTelemetry spans
"""

__version__ = "1.0.0"
__all__ = ["database_types", "logging", "metrics", "tracing"]
