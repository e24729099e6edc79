"""
Chitti Udi - Shared bowls of entries, juggled at random.

A group fills a bowl with entries, then the bowl is resolved by its type:
- Pick one entry (and discard it, or keep it)
- Shuffle the members or the entries
- Split the members into pairs
- Draw Secret Santa assignments

The package provides:
- The bowl engine (validation, authorization, resolution)
- A versioned shared store with live subscriptions
- Device-side flows (identity, joined bowls, share links)
- A REST/WebSocket API and a CLI
"""

__version__ = "0.1.0"
