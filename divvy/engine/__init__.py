"""Engine layer: pure calculations over market data models.

Nothing here performs I/O. Expected absence of a result (too little history,
no valid valuation) is returned as None rather than raised.
"""
