"""
taxiledger.backup - snapshot, export and restore of every domain collection.

Entry points live in ``taxiledger.backup.service``; the modules below it are
the building blocks (normalizer, parser, payload builder, sheet codec and
decoder, restore orchestrator).
"""
