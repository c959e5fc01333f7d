"""
Persistence Indexer: event mapping and correlation engine for the Persistence chain.

Consumes decoded Cosmos transactions and events in block order and derives
reward events, IBC transfer correlations, bank transfers, user registries and
hourly/daily/monthly activity counters. Modular layout with a clear split
between decoded chain models, the entity store, and the mapping handlers.
"""

__version__ = "0.1.0"
