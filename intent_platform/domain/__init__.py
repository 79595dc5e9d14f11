"""
Domain vocabulary: error taxonomy, ledger events and value models.

Nothing here touches the ledger or performs I/O.
"""
