"""
Haseela - Source Package

A freelancer income tracker: clients, priced tasks, monthly goals,
and the earnings reports derived from them.

DESIGN PRINCIPLES:
1. One authoritative state value, replaced wholesale on every change
2. Reports are recomputed from state, never cached
3. Local durability first, remote sync best-effort
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Haseela Team"
